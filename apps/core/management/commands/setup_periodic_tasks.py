"""
Management command to register the rate limit sweep with django-celery-beat.
"""
from django.core.management.base import BaseCommand
from django_celery_beat.models import IntervalSchedule, PeriodicTask
import json


class Command(BaseCommand):
    help = 'Register the periodic rate limit sweep task'

    def add_arguments(self, parser):
        parser.add_argument(
            '--minutes',
            type=int,
            default=5,
            help='Sweep interval in minutes (default: 5)',
        )

    def handle(self, *args, **options):
        minutes = options['minutes']
        schedule, created = IntervalSchedule.objects.get_or_create(
            every=minutes,
            period=IntervalSchedule.MINUTES,
        )

        if created:
            self.stdout.write(
                self.style.SUCCESS(f'Created interval schedule: every {minutes} minutes')
            )
        else:
            self.stdout.write(f'Interval schedule for every {minutes} minutes already exists')

        task, created = PeriodicTask.objects.update_or_create(
            name='sweep-rate-limits',
            defaults={
                'task': 'apps.core.tasks.maintenance.sweep_rate_limits',
                'interval': schedule,
                'crontab': None,
                'enabled': True,
                'kwargs': json.dumps({}),
            }
        )

        if created:
            self.stdout.write(self.style.SUCCESS('Created periodic task: sweep-rate-limits'))
        else:
            self.stdout.write('Updated periodic task: sweep-rate-limits')

        self.stdout.write(
            self.style.SUCCESS(f'Rate limit sweep runs every {minutes} minutes')
        )
