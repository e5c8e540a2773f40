from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.test import override_settings
from rest_framework import status

from apps.orders import services as order_services
from apps.orders.models import Order, OrderItem
from apps.products.models import Product
from apps.stocks.models import StockEvent
from tests.helpers import TenantAPITestCase

URL = "/api/v1/orders"


class OrderCreationTest(TenantAPITestCase):
    def setUp(self):
        super().setUp()
        self.customer = self.make_customer()
        self.latte = self.make_product(name="Latte", price="4.50", stock=10)
        self.bagel = self.make_product(name="Bagel", price="2.75", stock=5, category="food")

    def post_order(self, items, **extra):
        payload = {"customerId": str(self.customer.customer_id), "items": items}
        payload.update(extra)
        return self.client.post(URL, payload)

    def test_create_order_updates_stock_and_customer(self):
        response = self.post_order([
            {"productId": str(self.latte.product_id), "quantity": 2},
            {"productId": str(self.bagel.product_id), "quantity": 1},
        ])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["total"], Decimal("11.75"))
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["paymentMethod"], "cash")
        self.assertEqual(response.data["customer"]["email"], "ana@example.com")
        self.assertEqual(len(response.data["items"]), 2)
        self.assertEqual({item["price"] for item in response.data["items"]}, {Decimal("4.50"), Decimal("2.75")})

        self.latte.refresh_from_db()
        self.bagel.refresh_from_db()
        self.assertEqual(self.latte.stock, 8)
        self.assertEqual(self.bagel.stock, 4)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_spent, Decimal("11.75"))
        self.assertEqual(self.customer.visit_count, 1)
        self.assertEqual(self.customer.loyalty_points, 11)
        self.assertIsNotNone(self.customer.last_visit)

    def test_explicit_status_and_payment_method(self):
        response = self.post_order(
            [{"productId": str(self.latte.product_id), "quantity": 1}],
            status="completed",
            paymentMethod="card",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], "completed")
        self.assertEqual(response.data["paymentMethod"], "card")

    def test_unknown_status_is_rejected(self):
        response = self.post_order([{"productId": str(self.latte.product_id), "quantity": 1}], status="shipped")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

    def test_loyalty_points_round_down(self):
        muffin = self.make_product(name="Muffin", price="4.99", stock=3, category="food")
        response = self.post_order([{"productId": str(muffin.product_id), "quantity": 1}])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 4)
        self.assertEqual(self.customer.total_spent, Decimal("4.99"))

    def test_insufficient_stock_rejects_whole_order(self):
        single = self.make_product(name="Last Croissant", price="3.00", stock=1, category="pastry")
        response = self.post_order([
            {"productId": str(single.product_id), "quantity": 1},
            {"productId": str(self.bagel.product_id), "quantity": 999},
        ])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "Insufficient stock for Bagel"})
        single.refresh_from_db()
        self.bagel.refresh_from_db()
        self.assertEqual(single.stock, 1)
        self.assertEqual(self.bagel.stock, 5)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertFalse(StockEvent.objects.exists())
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.visit_count, 0)

    def test_repeated_lines_are_checked_together(self):
        response = self.post_order([
            {"productId": str(self.bagel.product_id), "quantity": 3},
            {"productId": str(self.bagel.product_id), "quantity": 3},
        ])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.bagel.refresh_from_db()
        self.assertEqual(self.bagel.stock, 5)

        response = self.post_order([
            {"productId": str(self.bagel.product_id), "quantity": 2},
            {"productId": str(self.bagel.product_id), "quantity": 3},
        ])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["total"], Decimal("13.75"))
        self.bagel.refresh_from_db()
        self.assertEqual(self.bagel.stock, 0)

    def test_validation_errors(self):
        response = self.client.post(URL, {"items": [{"productId": str(self.latte.product_id), "quantity": 1}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.post_order([])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.post_order([{"productId": str(self.latte.product_id), "quantity": 0}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("quantity", response.data["error"])

    def test_unknown_customer_or_product_is_not_found(self):
        response = self.client.post(URL, {
            "customerId": "00000000-0000-0000-0000-000000000000",
            "items": [{"productId": str(self.latte.product_id), "quantity": 1}],
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Customer not found"})

        response = self.post_order([{"productId": "not-a-uuid", "quantity": 1}])
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Product not-a-uuid not found"})

    def test_foreign_customer_and_product_are_not_found(self):
        foreign_customer = self.make_customer(email="theirs@example.com", scope=self.other_scope)
        foreign_product = self.make_product(name="Their Latte", scope=self.other_scope)

        response = self.client.post(URL, {
            "customerId": str(foreign_customer.customer_id),
            "items": [{"productId": str(self.latte.product_id), "quantity": 1}],
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.post_order([{"productId": str(foreign_product.product_id), "quantity": 1}])
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        foreign_product.refresh_from_db()
        self.assertEqual(foreign_product.stock, 10)
        self.latte.refresh_from_db()
        self.assertEqual(self.latte.stock, 10)

    def test_item_price_is_frozen(self):
        order = order_services.create_order(
            self.scope, self.customer.customer_id, [{"product_id": self.latte.product_id, "quantity": 2}]
        )
        self.client.put("/api/v1/products", {"id": str(self.latte.product_id), "price": "6.00"})

        response = self.client.get(URL)
        self.assertEqual(response.data[0]["total"], Decimal("9.00"))
        self.assertEqual(response.data[0]["items"][0]["price"], Decimal("4.50"))
        order.refresh_from_db()
        self.assertEqual(order.total, Decimal("9.00"))

    def test_stock_events_are_recorded(self):
        order = order_services.create_order(
            self.scope, self.customer.customer_id, [{"product_id": self.latte.product_id, "quantity": 3}]
        )
        event = StockEvent.objects.get(product=self.latte)
        self.assertEqual(event.delta, -3)
        self.assertEqual(event.resulting_level, 7)
        self.assertEqual(event.source, StockEvent.SOURCE_ORDER)
        self.assertEqual(event.order_id, order.order_id)

        order_services.delete_order(self.scope, order.order_id)
        reversal = StockEvent.objects.get(product=self.latte, source=StockEvent.SOURCE_ORDER_REVERSAL)
        self.assertEqual(reversal.delta, 3)
        self.assertEqual(reversal.resulting_level, 10)


class OrderLedgerPropertiesTest(TenantAPITestCase):
    def setUp(self):
        super().setUp()
        self.customer = self.make_customer()

    def test_create_then_delete_conserves_stock(self):
        espresso = self.make_product(name="Espresso", price="2.20", stock=7)
        cookie = self.make_product(name="Cookie", price="1.10", stock=4, category="food")

        response = self.client.post(URL, {
            "customerId": str(self.customer.customer_id),
            "items": [
                {"productId": str(espresso.product_id), "quantity": 5},
                {"productId": str(cookie.product_id), "quantity": 4},
            ],
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.delete(f"{URL}?id={response.data['id']}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        espresso.refresh_from_db()
        cookie.refresh_from_db()
        self.assertEqual(espresso.stock, 7)
        self.assertEqual(cookie.stock, 4)
        self.assertFalse(OrderItem.objects.exists())

    def test_deleting_one_of_many_orders_keeps_aggregates_consistent(self):
        product = self.make_product(name="Beans", price="1.00", stock=100)
        quantities = [3, 5, 8]
        prices = ["4.99", "2.50", "7.25"]
        orders = []
        for quantity, price in zip(quantities, prices):
            Product.objects.filter(pk=product.pk).update(price=Decimal(price))
            orders.append(order_services.create_order(
                self.scope, self.customer.customer_id, [{"product_id": product.product_id, "quantity": quantity}]
            ))
        totals = [order.total for order in orders]
        self.assertEqual(totals, [Decimal("14.97"), Decimal("12.50"), Decimal("58.00")])

        self.customer.refresh_from_db()
        last_visit = self.customer.last_visit
        self.assertEqual(self.customer.total_spent, sum(totals))
        self.assertEqual(self.customer.loyalty_points, 14 + 12 + 58)

        response = self.client.delete(f"{URL}?id={orders[0].order_id}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_spent, Decimal("70.50"))
        self.assertEqual(self.customer.visit_count, 2)
        self.assertEqual(self.customer.loyalty_points, 12 + 58)
        # No visit history is kept, so deletion leaves last_visit alone
        self.assertEqual(self.customer.last_visit, last_visit)

        product.refresh_from_db()
        self.assertEqual(product.stock, 100 - 5 - 8)

    def test_delete_from_any_status(self):
        product = self.make_product(stock=3)
        for status_value in ("pending", "completed", "cancelled"):
            order = order_services.create_order(
                self.scope, self.customer.customer_id,
                [{"product_id": product.product_id, "quantity": 1}], status=status_value,
            )
            response = self.client.delete(f"{URL}?id={order.order_id}")
            self.assertEqual(response.status_code, status.HTTP_200_OK, status_value)

        product.refresh_from_db()
        self.assertEqual(product.stock, 3)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.visit_count, 0)

    def test_delete_unknown_or_foreign_order_is_not_found(self):
        other_customer = self.make_customer(email="theirs@example.com", scope=self.other_scope)
        other_product = self.make_product(scope=self.other_scope)
        foreign = order_services.create_order(
            self.other_scope, other_customer.customer_id, [{"product_id": other_product.product_id, "quantity": 1}]
        )

        response = self.client.delete(f"{URL}?id={foreign.order_id}")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Order not found"})
        self.assertTrue(Order.objects.filter(pk=foreign.pk).exists())

        response = self.client.delete(URL)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "Order ID is required"})

    def test_failure_after_stock_moves_rolls_back_creation(self):
        product = self.make_product(name="Beans", price="3.00", stock=5)

        with mock.patch("apps.customers.ledger.apply_order_created", side_effect=DatabaseError("write failed")):
            with self.assertRaises(DatabaseError):
                order_services.create_order(
                    self.scope, self.customer.customer_id, [{"product_id": product.product_id, "quantity": 2}]
                )

        product.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(product.stock, 5)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertFalse(StockEvent.objects.exists())
        self.assertEqual(self.customer.visit_count, 0)

    def test_failure_after_stock_restore_rolls_back_deletion(self):
        product = self.make_product(name="Beans", price="3.00", stock=5)
        order = order_services.create_order(
            self.scope, self.customer.customer_id, [{"product_id": product.product_id, "quantity": 2}]
        )

        with mock.patch("apps.customers.ledger.apply_order_deleted", side_effect=DatabaseError("write failed")):
            with self.assertRaises(DatabaseError):
                order_services.delete_order(self.scope, order.order_id)

        product.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(product.stock, 3)
        self.assertTrue(Order.objects.filter(pk=order.pk).exists())
        self.assertEqual(OrderItem.objects.filter(order=order).count(), 1)
        self.assertEqual(self.customer.visit_count, 1)
        self.assertEqual(self.customer.total_spent, Decimal("6.00"))


class OrderStatusTest(TenantAPITestCase):
    def setUp(self):
        super().setUp()
        self.customer = self.make_customer()
        self.product = self.make_product(stock=10)

    def make_order(self, status_value="pending"):
        return order_services.create_order(
            self.scope, self.customer.customer_id,
            [{"product_id": self.product.product_id, "quantity": 2}], status=status_value,
        )

    def test_status_change_does_not_touch_ledgers(self):
        order = self.make_order()
        response = self.client.put(URL, {"id": str(order.order_id), "status": "completed"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "completed")
        self.assertEqual(response.data["total"], order.total)
        self.product.refresh_from_db()
        self.customer.refresh_from_db()
        self.assertEqual(self.product.stock, 8)
        self.assertEqual(self.customer.visit_count, 1)

        response = self.client.put(URL, {"id": str(order.order_id), "status": "cancelled"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 8)

    def test_illegal_transitions_are_rejected(self):
        order = self.make_order("cancelled")
        response = self.client.put(URL, {"id": str(order.order_id), "status": "pending"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "Cannot change order status from cancelled to pending"})

        order = self.make_order("completed")
        response = self.client.put(URL, {"id": str(order.order_id), "status": "pending"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_same_status_is_a_no_op(self):
        order = self.make_order("completed")
        response = self.client.put(URL, {"id": str(order.order_id), "status": "completed"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @override_settings(ORDERS_ENFORCE_STATUS_TRANSITIONS=False)
    def test_transitions_unrestricted_when_enforcement_is_off(self):
        order = self.make_order("cancelled")
        response = self.client.put(URL, {"id": str(order.order_id), "status": "pending"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "pending")

    def test_unknown_status_value(self):
        order = self.make_order()
        response = self.client.put(URL, {"id": str(order.order_id), "status": "refunded"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_foreign_order_status_is_not_found(self):
        other_customer = self.make_customer(email="theirs@example.com", scope=self.other_scope)
        other_product = self.make_product(scope=self.other_scope)
        foreign = order_services.create_order(
            self.other_scope, other_customer.customer_id, [{"product_id": other_product.product_id, "quantity": 1}]
        )
        response = self.client.put(URL, {"id": str(foreign.order_id), "status": "completed"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        foreign.refresh_from_db()
        self.assertEqual(foreign.status, "pending")


class OrderListTest(TenantAPITestCase):
    def test_list_filters(self):
        ana = self.make_customer()
        bo = self.make_customer(name="Bo", email="bo@example.com")
        product = self.make_product(stock=20)
        line = [{"product_id": product.product_id, "quantity": 1}]
        order_services.create_order(self.scope, ana.customer_id, line)
        order_services.create_order(self.scope, ana.customer_id, line, status="completed")
        order_services.create_order(self.scope, bo.customer_id, line)

        response = self.client.get(URL)
        self.assertEqual(len(response.data), 3)
        self.assertEqual(response.data[0]["items"][0]["product"]["name"], "Flat White")

        response = self.client.get(URL, {"customerId": str(ana.customer_id)})
        self.assertEqual(len(response.data), 2)

        response = self.client.get(URL, {"customerId": str(ana.customer_id), "status": "completed"})
        self.assertEqual(len(response.data), 1)

        response = self.client.get(URL, {"status": "bogus"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_hides_other_tenants(self):
        other_customer = self.make_customer(email="theirs@example.com", scope=self.other_scope)
        other_product = self.make_product(scope=self.other_scope)
        order_services.create_order(
            self.other_scope, other_customer.customer_id, [{"product_id": other_product.product_id, "quantity": 1}]
        )

        response = self.client.get(URL)
        self.assertEqual(response.data, [])

        response = self.client.get(URL, {"customerId": str(other_customer.customer_id)})
        self.assertEqual(response.data, [])
