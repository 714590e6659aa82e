"""Seed initial catalog data for development sanity-check.

Creates a few products, some with SKUs, and books their opening stock as
inbound movements. Re-running is idempotent; existing items are reused by
name/sku_code and no stock is added for them.
"""

from catalog.models import Product, ProductSKU
from common.choices import MovementType
from django.core.management.base import BaseCommand
from django.db import transaction
from inventory.services import apply_movement

PRODUCTS = [
    {
        "name": "Studio Monitor Speakers",
        "subtitle": "Nearfield monitors for accurate mixing",
        "price": "1299.00",
        "image": "https://images.example.com/monitor-speakers.jpg",
        "stock": 20,
        "skus": [],
    },
    {
        "name": "Cotton T-Shirt",
        "subtitle": "Everyday crew neck",
        "price": "99.00",
        "image": "https://images.example.com/tshirt.jpg",
        "stock": 0,
        "skus": [
            {"sku_code": "TSHIRT-BLK-M", "name": "Black / M", "price": "99.00", "stock": 30},
            {"sku_code": "TSHIRT-BLK-L", "name": "Black / L", "price": "99.00", "stock": 25},
            {"sku_code": "TSHIRT-WHT-M", "name": "White / M", "price": "109.00", "stock": 15},
        ],
    },
    {
        "name": "HDMI 2.1 Cable 2m",
        "subtitle": "Ultra High Speed, 8K ready",
        "price": "39.90",
        "image": "https://images.example.com/hdmi-cable.jpg",
        "stock": 100,
        "skus": [],
    },
]


class Command(BaseCommand):
    help = "Seed initial catalog data (products, SKUs and opening stock)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog data...")

        created_units = 0
        for index, p in enumerate(PRODUCTS):
            product, created = Product.objects.get_or_create(
                name=p["name"],
                defaults={
                    "subtitle": p["subtitle"],
                    "price": p["price"],
                    "image": p["image"],
                    "sort_order": index,
                },
            )
            if created and p["stock"]:
                apply_movement(
                    product_id=product.id,
                    movement_type=MovementType.INBOUND,
                    quantity=p["stock"],
                    reason="seed",
                )
                created_units += 1

            for s in p["skus"]:
                sku, sku_created = ProductSKU.objects.get_or_create(
                    sku_code=s["sku_code"],
                    defaults={"product": product, "name": s["name"], "price": s["price"]},
                )
                if sku_created and s["stock"]:
                    apply_movement(
                        product_id=product.id,
                        sku_id=sku.id,
                        movement_type=MovementType.INBOUND,
                        quantity=s["stock"],
                        reason="seed",
                    )
                    created_units += 1

        self.stdout.write(self.style.SUCCESS(f"Catalog seed complete. Stocked {created_units} new units."))
