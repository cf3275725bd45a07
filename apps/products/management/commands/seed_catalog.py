"""
Management command to seed a starter firewood catalog.
Creates the usual categories, a few products with images and specifications,
and some testimonials for the home page.
"""

from typing import Any

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.products.models import Category, Product, ProductImage, ProductSpecification, Testimonial

CATEGORIES: list[dict[str, Any]] = [
    {
        "name": "Bois de chauffage",
        "short_description": "Bûches de feuillus séchées, livrées en stères",
        "featured": True,
        "sort_order": 1,
    },
    {
        "name": "Granulés",
        "short_description": "Granulés de bois certifiés pour poêles",
        "featured": True,
        "sort_order": 2,
    },
    {
        "name": "Allume-feu",
        "short_description": "Allume-feu naturels et petit bois",
        "sort_order": 3,
    },
]

PRODUCTS: list[dict[str, Any]] = [
    {
        "category": "Bois de chauffage",
        "name": "Chêne sec 33 cm",
        "short_description": "Chêne séché moins de 20% d'humidité, coupé en 33 cm",
        "essence": "chêne",
        "price_cents": 8990,
        "compare_at_price_cents": 9990,
        "unit": "stère",
        "stock": 40,
        "badges": ["premium", "bestseller"],
        "featured": True,
        "bestseller": True,
        "specifications": [("Humidité", "< 20", "%"), ("Longueur", "33", "cm")],
    },
    {
        "category": "Bois de chauffage",
        "name": "Hêtre sec 50 cm",
        "short_description": "Hêtre à flamme vive, idéal pour les inserts",
        "essence": "hêtre",
        "price_cents": 8490,
        "unit": "stère",
        "stock": 25,
        "badges": ["populaire"],
        "featured": True,
        "specifications": [("Humidité", "< 20", "%"), ("Longueur", "50", "cm")],
    },
    {
        "category": "Granulés",
        "name": "Granulés DIN+ 15 kg",
        "short_description": "Sacs de 15 kg, faible taux de cendres",
        "essence": "granulés",
        "price_cents": 690,
        "unit": "sac",
        "stock": 300,
        "badges": ["écologique"],
        "trending": True,
        "specifications": [("Poids", "15", "kg"), ("Cendres", "< 0.7", "%")],
    },
    {
        "category": "Allume-feu",
        "name": "Allume-feu laine de bois",
        "short_description": "Boîte de 100 allume-feu en laine de bois et cire",
        "essence": "allume-feu",
        "price_cents": 1290,
        "unit": "pack",
        "stock": 80,
        "badges": ["nouveau"],
        "specifications": [("Quantité", "100", "pièces")],
    },
]

TESTIMONIALS: list[dict[str, Any]] = [
    {
        "name": "Claire M.",
        "location": "Dijon",
        "rating": 5,
        "comment": "Livraison rapide et bois vraiment sec, je recommande sans hésiter.",
        "product_purchased": "Chêne sec 33 cm",
        "verified": True,
        "featured": True,
    },
    {
        "name": "Julien R.",
        "location": "Besançon",
        "rating": 4,
        "comment": "Granulés de bonne qualité, très peu de cendres dans le poêle.",
        "product_purchased": "Granulés DIN+ 15 kg",
        "verified": True,
        "featured": True,
    },
]


class Command(BaseCommand):
    help = "Seed a starter firewood catalog (categories, products, testimonials)"

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Update products that already exist instead of skipping them",
        )

    @transaction.atomic
    def handle(self, *args: Any, **options: Any) -> None:
        overwrite = options["overwrite"]
        self.stdout.write(self.style.SUCCESS("🪵 Seeding the firewood catalog..."))

        categories: dict[str, Category] = {}
        for data in CATEGORIES:
            category, created = Category.objects.get_or_create(name=data["name"], defaults=data)
            categories[category.name] = category
            self.stdout.write(f"  {'✅ Created' if created else '⏭️ Kept'} category {category.name}")

        created_count = 0
        for raw in PRODUCTS:
            data = dict(raw)
            specifications = data.pop("specifications")
            data["category"] = categories[data["category"]]

            product = Product.objects.filter(name=data["name"]).first()
            if product and not overwrite:
                self.stdout.write(f"  ⏭️ Skipped {product.name}")
                continue

            if product is None:
                product = Product(**data)
                created_count += 1
            else:
                for field, value in data.items():
                    setattr(product, field, value)
            product.full_clean()
            product.save()

            product.specifications.all().delete()
            for position, (name, value, unit) in enumerate(specifications):
                ProductSpecification.objects.create(
                    product=product, name=name, value=value, unit=unit, sort_order=position
                )
            if not product.images.exists():
                ProductImage.objects.create(
                    product=product,
                    url=f"/images/products/{product.slug}.jpg",
                    alt=product.name,
                    is_primary=True,
                )
            self.stdout.write(f"  ✅ {product.name} ({product.slug})")

        for data in TESTIMONIALS:
            Testimonial.objects.get_or_create(name=data["name"], comment=data["comment"], defaults=data)

        self.stdout.write(
            self.style.SUCCESS(
                f"🎉 Catalog ready: {len(categories)} categories, {created_count} new products, "
                f"{Testimonial.objects.count()} testimonials"
            )
        )
