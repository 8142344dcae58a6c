from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, SetStatusDTO
from modules.orders.views import build_order_service
from modules.products.models import Product, ProductStatus

SAMPLE_ADDRESS = {
    "line1": "221B Baker Street",
    "city": "London",
    "postal_code": "NW1 6XE",
    "country": "GB",
}


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        with transaction.atomic():
            staff, customers = self._seed_users()
            products = self._seed_products()
            orders_created = self._seed_orders(
                staff, customers, products, options["orders"]
            )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self):
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@example.com", password="admin123"
            )
        staff, _ = User.objects.get_or_create(
            username="staff",
            defaults={"email": "staff@example.com", "is_staff": True},
        )
        customers = []
        for username in ("alice", "bob", "carol"):
            user, created = User.objects.get_or_create(
                username=username, defaults={"email": f"{username}@example.com"}
            )
            if created:
                user.set_password(f"{username}123")
                user.save(update_fields=["password"])
            customers.append(user)
        return staff, customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("TEE-001", "Logo T-Shirt", Decimal("25.00")),
            ("TEE-002", "Anniversary T-Shirt", Decimal("29.00")),
            ("HOOD-001", "Zip Hoodie", Decimal("65.00")),
            ("CAP-001", "Snapback Cap", Decimal("22.50")),
            ("MUG-001", "Enamel Mug", Decimal("14.00")),
            ("PIN-001", "Enamel Pin Set", Decimal("9.90")),
            ("POS-001", "Event Poster A2", Decimal("18.00")),
            ("BAG-001", "Tote Bag", Decimal("16.00")),
            ("TIX-001", "Day Pass", Decimal("100.00")),
            ("TIX-002", "Weekend Pass", Decimal("180.00")),
        ]
        products = []
        for sku, name, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "price": price,
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, staff, customers, products, count: int) -> int:
        self.stdout.write("Creating orders...")
        service = build_order_service()
        target_statuses = [
            OrderStatus.PENDING,
            OrderStatus.PAID,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ]

        for _ in range(count):
            customer = random.choice(customers)
            lines = random.sample(products, k=random.randint(1, 3))
            order = service.create_order(
                customer,
                CreateOrderDTO(
                    items=[
                        CreateOrderItemDTO(
                            product_id=product.id, quantity=random.randint(1, 3)
                        )
                        for product in lines
                    ],
                    shipping_address=SAMPLE_ADDRESS,
                    billing_address=SAMPLE_ADDRESS,
                    payment_method={"type": "card", "brand": "visa"},
                ),
            )
            status = random.choice(target_statuses)
            if status != OrderStatus.PENDING:
                service.set_status(
                    staff,
                    SetStatusDTO(
                        status=status,
                        payment_status=(
                            None if status == OrderStatus.CANCELLED else "paid"
                        ),
                        notes="Seed data",
                    ),
                    order_id=order.id,
                )

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return count
