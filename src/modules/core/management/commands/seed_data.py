from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.core.actors import actor_from_user
from modules.core.constants import Role
from modules.core.models import StaffProfile
from modules.milestones.views import build_milestone_service
from modules.orders.constants import OrderType, PackagingType, TradeTerm
from modules.orders.dtos import CreateExportOrderDTO
from modules.orders.models import ExportOrder
from modules.orders.repositories.django_repository import ExportOrderDjangoRepository
from modules.orders.services import ExportOrderService


class Command(BaseCommand):
    help = "Seed database with staff users and activated sample export orders."

    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        orders_created = self._seed_orders()

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: users={users_created}, orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        for role in Role.values:
            if role == Role.ADMIN or User.objects.filter(username=role).exists():
                continue
            user = User.objects.create_user(role, password=f"{role}123")
            StaffProfile.objects.create(user=user, role=role, display_name=role.title())
            created += 1
        return created

    def _seed_orders(self) -> int:
        if ExportOrder.objects.exists():
            self.stdout.write("Export orders already present, skipping.")
            return 0

        self.stdout.write("Creating export orders...")
        creator = actor_from_user(get_user_model().objects.get(username=Role.SALES))
        order_service = ExportOrderService(order_repository=ExportOrderDjangoRepository())
        milestone_service = build_milestone_service()
        today = timezone.localdate()

        seed_orders = [
            CreateExportOrderDTO(
                customer_name="Northwind Apparel",
                trade_term=TradeTerm.FOB,
                etd=today + timedelta(days=60),
            ),
            CreateExportOrderDTO(
                customer_name="Blue Harbor Retail",
                trade_term=TradeTerm.DDP,
                warehouse_due_date=today + timedelta(days=75),
                packaging_type=PackagingType.CUSTOM,
                needs_third_party_qc=True,
            ),
            CreateExportOrderDTO(
                customer_name="Linden Outfitters",
                trade_term=TradeTerm.FOB,
                etd=today + timedelta(days=35),
                order_type=OrderType.SAMPLE,
                needs_pp_sample=False,
            ),
        ]
        for dto in seed_orders:
            order = order_service.create_order(dto, creator)
            milestone_service.activate_order(order.id, creator)
            self.stdout.write(f"  {order.order_number} {order.customer_name}")
        return len(seed_orders)
