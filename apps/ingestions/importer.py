"""
Bulk import reconciler for customer, product and order rows.

Rows are applied one at a time, each in its own savepoint, through the
same services the interactive endpoints use. A failing row is recorded
with its natural key and the batch carries on.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from django.db import transaction
from rest_framework.exceptions import ValidationError

from apps.core.exceptions import DashboardError, DuplicateEmail, InsufficientStock, flatten_errors
from apps.core.scoping import TenantScope
from apps.customers import services as customer_services
from apps.customers.models import Customer
from apps.customers.serializers import CustomerImportRowSerializer
from apps.orders import services as order_services
from apps.orders.models import Order
from apps.orders.serializers import OrderImportRowSerializer
from apps.products import services as product_services
from apps.products.serializers import ProductWriteSerializer

logger = logging.getLogger(__name__)


class RowError(Exception):
    """A row failure reported under a specific natural key."""

    def __init__(self, key: str, message: str):
        self.key = key
        self.message = message
        super().__init__(f"{key}: {message}")


@dataclass
class ImportResult:
    entity: str
    success_count: int = 0
    failure_count: int = 0
    errors: List[str] = field(default_factory=list)

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, key: str, message: str) -> None:
        self.failure_count += 1
        self.errors.append(f"{key}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': f"Imported {self.success_count} {self.entity}. {self.failure_count} failed.",
            'successCount': self.success_count,
            'failureCount': self.failure_count,
            'errors': self.errors,
        }


def _row_key(row: Any, field_name: str, row_num: int) -> str:
    if isinstance(row, dict):
        value = row.get(field_name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return f"Row {row_num}"


def _validated(serializer_class, row: Dict) -> Dict:
    # CSV exports send empty cells as "", which means "not given" for optional columns
    optional = {name for name, f in serializer_class().fields.items() if not f.required}
    row = {
        name: value for name, value in row.items()
        if not (name in optional and isinstance(value, str) and not value.strip())
    }
    serializer = serializer_class(data=row)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class BulkImportReconciler:
    """Applies import batches for one tenant."""

    def __init__(self, scope: TenantScope):
        self.scope = scope

    def _run(self, entity: str, rows: Iterable, key_field: str,
             apply_row: Callable[[Dict, str], None]) -> ImportResult:
        result = ImportResult(entity=entity)
        start_time = time.time()

        for row_num, row in enumerate(rows, 1):
            key = _row_key(row, key_field, row_num)
            try:
                if not isinstance(row, dict):
                    raise RowError(key, "Invalid row")
                with transaction.atomic():
                    apply_row(row, key)
                result.record_success()
            except RowError as e:
                result.record_failure(e.key, e.message)
            except ValidationError as e:
                result.record_failure(key, flatten_errors(e.detail))
            except DashboardError as e:
                result.record_failure(key, e.message)
            except Exception as e:
                logger.error(f"Unexpected error importing {entity} row {row_num} ({key}): {e}", exc_info=True)
                result.record_failure(key, "Unexpected error")

        logger.info(
            f"Imported {entity} for tenant {self.scope.tenant_id}: "
            f"{result.success_count} succeeded, {result.failure_count} failed "
            f"in {time.time() - start_time:.2f}s"
        )
        return result

    # ---- customers ----
    def _import_customer_row(self, row: Dict, key: str) -> None:
        data = _validated(CustomerImportRowSerializer, row)
        try:
            customer_services.create_customer(self.scope, **data)
        except DuplicateEmail:
            raise RowError(key, "Email already exists")

    def import_customers(self, rows: Iterable) -> ImportResult:
        return self._run('customers', rows, 'email', self._import_customer_row)

    # ---- products ----
    def _import_product_row(self, row: Dict, key: str) -> None:
        data = _validated(ProductWriteSerializer, row)
        product_services.create_product(self.scope, **data)

    def import_products(self, rows: Iterable) -> ImportResult:
        return self._run('products', rows, 'name', self._import_product_row)

    # ---- orders ----
    def _import_order_row(self, row: Dict, key: str) -> None:
        data = _validated(OrderImportRowSerializer, row)
        email = customer_services.normalize_email(data['customer_email'])
        product_name = data['product_name'].strip()

        customer: Optional[Customer] = self.scope.queryset(Customer).filter(email=email).first()
        if customer is None:
            raise RowError(data['customer_email'], "Customer not found")
        product = product_services.find_by_name(self.scope, product_name)
        if product is None:
            raise RowError(product_name, "Product not found")

        try:
            order_services.create_order(
                self.scope,
                customer_id=customer.customer_id,
                items=[{'product_id': product.product_id, 'quantity': data['quantity']}],
                payment_method=data.get('payment_method'),
                status=data.get('status') or Order.STATUS_COMPLETED,
                order_date=data.get('order_date'),
            )
        except InsufficientStock as e:
            raise RowError(product_name, e.message)

    def import_orders(self, rows: Iterable) -> ImportResult:
        return self._run('orders', rows, 'customerEmail', self._import_order_row)
