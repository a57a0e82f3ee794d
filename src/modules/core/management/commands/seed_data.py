from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderLineDTO, UpdateOrderDTO
from modules.orders.views import build_order_service
from modules.products.cache import CatalogCache
from modules.products.dtos import CreateDiscountDTO, CreateProductDTO
from modules.products.exceptions import InsufficientStock
from modules.products.models import Product
from modules.products.repositories import (
    DiscountDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.services import DiscountService, ProductService
from modules.users.models import Role
from modules.users.repositories.django_repository import RoleDjangoRepository


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        products = self._seed_products()
        discounts = self._seed_special_prices(users["business"], products)
        orders_created = self._seed_orders(users, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"special_prices={discounts}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict:
        User = get_user_model()
        roles = RoleDjangoRepository()
        seeded = {}
        for username, role in (
            ("admin", Role.ADMIN),
            ("wholesale", Role.BUSINESS),
            ("shopper", Role.CUSTOMER),
        ):
            user, created = User.objects.get_or_create(username=username)
            if created:
                user.set_password(f"{username}123")
                user.save(update_fields=["password"])
            roles.assign(user.id, role)
            seeded[role.value] = user
        return seeded

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        repository = ProductDjangoRepository()
        service = ProductService(repository=repository, cache=CatalogCache())
        catalog = [
            ("ELEC-001", "Monitor 27\"", "electronics", "219.00", "175.00", "0.21"),
            ("ELEC-002", "Mechanical keyboard", "electronics", "89.90", "70.00", "21"),
            ("ELEC-003", "Gaming mouse", "electronics", "45.50", None, "21"),
            ("FURN-001", "Office desk", "furniture", "349.00", "290.00", "0.21"),
            ("FURN-002", "Ergonomic chair", "furniture", "259.00", "210.00", "21"),
            ("OFF-001", "A4 paper (500)", "office", "6.40", "4.90", "0.10"),
            ("OFF-002", "Blue pen", "office", "1.20", "0.80", "10"),
            ("OFF-003", "Notebook", "office", "3.75", None, None),
        ]
        products: list[Product] = []
        for sku, name, category, price, wholesale, iva in catalog:
            product = repository.get_by_sku(sku)
            if product is None:
                product = service.create_product(
                    CreateProductDTO(
                        sku=sku,
                        name=name,
                        category=category,
                        list_price=Decimal(price),
                        wholesale_price=Decimal(wholesale) if wholesale else None,
                        iva=Decimal(iva) if iva else None,
                        stock_quantity=random.randint(50, 300),
                    )
                )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_special_prices(self, user, products: list[Product]) -> int:
        service = DiscountService(
            repository=DiscountDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            role_repository=RoleDjangoRepository(),
            cache=CatalogCache(),
        )
        existing = {d.product_id for d in service.list_for_user(user.id)}
        created = 0
        for product in products[:2]:
            if product.id in existing:
                continue
            base = product.wholesale_price or product.list_price
            price = (base * Decimal("0.9")).quantize(Decimal("0.01"))
            service.create(
                user.id, CreateDiscountDTO(product_id=product.id, price=price)
            )
            created += 1
        return created

    def _seed_orders(self, users: dict, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        service = build_order_service()
        buyers = [users["business"], users["customer"]]
        created = 0

        for _ in range(count):
            buyer = random.choice(buyers)
            lines = [
                CreateOrderLineDTO(
                    product_id=product.id, quantity=random.randint(1, 3)
                )
                for product in random.sample(products, k=random.randint(1, 4))
            ]
            try:
                order = service.create_order(
                    CreateOrderDTO(
                        user_id=buyer.id,
                        lines=lines,
                        points_earned=random.randint(0, 50),
                    )
                )
            except InsufficientStock:
                self.stdout.write(self.style.WARNING("Stock exhausted, stopping."))
                break
            created += 1

            outcome = random.random()
            if outcome < 0.3:
                service.update_order(
                    order.id, UpdateOrderDTO(status=OrderStatus.ACCEPTED)
                )
            elif outcome < 0.4:
                service.cancel_order(order.id, "Customer changed their mind")

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
