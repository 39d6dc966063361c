import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Service",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("restaurant", "Restaurant"),
                            ("hotel", "Hotel"),
                            ("lodge", "Lodge"),
                            ("home_stay", "Home stay"),
                            ("luxury_villa", "Luxury villa"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=20,
                    ),
                ),
                ("description", models.TextField(blank=True)),
                ("address_line", models.CharField(blank=True, max_length=255)),
                ("is_available", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "host",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="services",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Service",
                "verbose_name_plural": "Services",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["host", "is_available"], name="catalog_ser_host_id_5c1a8e_idx")],
            },
        ),
        migrations.CreateModel(
            name="Resource",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "kind",
                    models.CharField(
                        choices=[("room", "Room"), ("table", "Table"), ("service", "Service")],
                        default="room",
                        max_length=20,
                    ),
                ),
                (
                    "booking_mode",
                    models.CharField(
                        choices=[("range", "Date/time range"), ("slot", "Fixed time slot")],
                        default="range",
                        max_length=10,
                    ),
                ),
                (
                    "capacity",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Flat capacity. Ignored when adults/children are set.",
                        null=True,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("capacity_adults", models.PositiveIntegerField(blank=True, null=True)),
                ("capacity_children", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0.00"))],
                    ),
                ),
                (
                    "pricing_unit",
                    models.CharField(
                        choices=[
                            ("night", "Per night"),
                            ("hour", "Per hour"),
                            ("guest", "Per guest"),
                            ("booking", "Per booking"),
                        ],
                        default="booking",
                        max_length=10,
                    ),
                ),
                ("currency", models.CharField(default="USD", max_length=3)),
                (
                    "slot_minutes",
                    models.PositiveIntegerField(
                        default=120,
                        help_text="Length of one slot for slot-mode resources.",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("is_available", models.BooleanField(default=True)),
                (
                    "booked_ranges",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Derived cache of active bookings; rebuilt from the bookings table.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="resources",
                        to="catalog.service",
                    ),
                ),
            ],
            options={
                "verbose_name": "Resource",
                "verbose_name_plural": "Resources",
                "ordering": ["service", "name"],
                "indexes": [models.Index(fields=["service", "is_available"], name="catalog_res_service_3f9b2d_idx")],
            },
        ),
        migrations.CreateModel(
            name="OpeningWindow",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "weekday",
                    models.CharField(
                        choices=[
                            ("monday", "Monday"),
                            ("tuesday", "Tuesday"),
                            ("wednesday", "Wednesday"),
                            ("thursday", "Thursday"),
                            ("friday", "Friday"),
                            ("saturday", "Saturday"),
                            ("sunday", "Sunday"),
                        ],
                        max_length=10,
                    ),
                ),
                ("opens_at", models.TimeField()),
                ("closes_at", models.TimeField()),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="opening_windows",
                        to="catalog.resource",
                    ),
                ),
            ],
            options={
                "verbose_name": "Opening window",
                "verbose_name_plural": "Opening windows",
                "ordering": ["resource", "weekday", "opens_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("closes_at__gt", models.F("opens_at"))),
                        name="opening_window_closes_after_opens",
                    )
                ],
            },
        ),
    ]
