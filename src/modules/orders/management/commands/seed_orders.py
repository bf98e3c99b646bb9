from __future__ import annotations

import random
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.core.repositories.django_store import DjangoDocumentStore
from modules.orders.constants import COLLECTIONS_BY_SCOPE, OrderStatus, StoreScope
from modules.orders.dtos import ClientInfo, CreateOrderDTO, CreateOrderItemDTO
from modules.orders.services import OrderService


SEED_CLIENTS = [
    ClientInfo(name="Ana", surname="Pérez", phone="3001234567", city="Bogotá"),
    ClientInfo(name="Carlos", surname="Gómez", phone="3109876543", city="Medellín"),
    ClientInfo(name="Lucía", surname="Martínez", phone="3205558899", city="Cali"),
]

SEED_PRODUCTS = [
    ("P-100", "Bolso Tote", "Velez", 185000),
    ("P-200", "Billetera Slim", "Totto", 65000),
    ("P-300", "Morral Urbano", "Totto", 149900),
    ("P-400", "Cinturón Clásico", "Velez", 89000),
]


class Command(BaseCommand):
    help = "Seed the document store with development orders, including legacy shapes."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development orders...")

        users_created = self._seed_users()
        store = DjangoDocumentStore()
        created = self._seed_structured_orders(store)
        legacy = self._seed_legacy_records(store)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"orders={created}, "
                f"legacy_records={legacy}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        managers, _ = Group.objects.get_or_create(name=settings.ORDER_MANAGERS_GROUP)
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="manager").exists():
            manager = User.objects.create_user("manager", password="manager123")
            manager.groups.add(managers)
            created += 1
        if not User.objects.filter(username="viewer").exists():
            User.objects.create_user("viewer", password="viewer123")
            created += 1
        return created

    def _seed_structured_orders(self, store: DjangoDocumentStore) -> int:
        created = 0
        for scope in StoreScope.values:
            service = OrderService(store, COLLECTIONS_BY_SCOPE[scope])
            for client in SEED_CLIENTS:
                products = random.sample(SEED_PRODUCTS, k=random.randint(1, 3))
                dto = CreateOrderDTO(
                    client=client,
                    items=[
                        CreateOrderItemDTO(
                            product_id=product_id,
                            name=name,
                            brand=brand,
                            quantity=random.randint(1, 4),
                            unit_price=price,
                        )
                        for product_id, name, brand, price in products
                    ],
                    price_tier=random.choice(["Precio 1", "Precio 2"]),
                )
                service.create_order(dto)
                created += 1
        return created

    def _seed_legacy_records(self, store: DjangoDocumentStore) -> int:
        """Orders written by older clients: text-only details, fresh deleted ids."""
        collections = COLLECTIONS_BY_SCOPE[StoreScope.PHYSICAL.value]
        now = timezone.now()

        store.put(
            collections.active,
            "legacy-001",
            {
                "orderDetails": "Cliente: Marta Ríos | Total: 50.000 | Tipo: 1 | "
                "Comentario: entregar en portería",
                "status": "pending",
                "labels": "mayorista",
            },
        )
        store.put(
            collections.active,
            "legacy-002",
            {
                "comentario": "cliente: Jorge Díaz | total: 120.500 | tipo: Precio 2",
                "totalAmount": 120500,
            },
        )
        # Deleted under a fresh document id; the real id survives in originalId.
        store.put(
            collections.deleted,
            "x9FqK2",
            {
                "orderDetails": "Cliente: Sofía León | Total: 75.000 | Tipo: 2",
                "status": OrderStatus.CONFIRMED.value,
                "originalId": "legacy-003",
                "deletedAt": (now - timedelta(days=3)).isoformat(),
                "retentionDate": (now + timedelta(days=27)).isoformat(),
            },
        )
        # No retentionDate: derived from deletedAt, already past the window.
        store.put(
            collections.deleted,
            "legacy-004",
            {
                "orderDetails": "Cliente: Pablo Ruiz | Total: 30.000",
                "deletedAt": (now - timedelta(days=45)).isoformat(),
                "remainingDays": 0,
            },
        )
        return 4
