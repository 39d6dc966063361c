import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("guest_name", models.CharField(blank=True, max_length=100)),
                ("guest_email", models.EmailField(blank=True, max_length=254)),
                ("guest_phone", models.CharField(blank=True, max_length=20)),
                (
                    "guest_token_hash",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        editable=False,
                        help_text="SHA-256 digest of the guest's possession token.",
                        max_length=64,
                    ),
                ),
                ("booking_code", models.CharField(editable=False, max_length=12, unique=True)),
                (
                    "source",
                    models.CharField(
                        choices=[("web", "Web"), ("mobile", "Mobile app"), ("agent", "Agent"), ("walk-in", "Walk-in")],
                        default="web",
                        max_length=20,
                    ),
                ),
                ("start_at", models.DateTimeField()),
                ("end_at", models.DateTimeField()),
                ("slot_date", models.DateField(blank=True, null=True)),
                ("slot_time", models.TimeField(blank=True, null=True)),
                (
                    "party_size",
                    models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("total_price", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="USD", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Awaiting payment"),
                            ("paid", "Paid"),
                            ("failed", "Payment failed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("stripe", "Stripe"),
                            ("paypal", "PayPal"),
                            ("razorpay", "Razorpay"),
                            ("esewa", "eSewa"),
                            ("credit_card", "Credit card"),
                        ],
                        max_length=20,
                    ),
                ),
                ("transaction_id", models.CharField(blank=True, db_index=True, max_length=128)),
                (
                    "special_requests",
                    models.TextField(blank=True, validators=[django.core.validators.MaxLengthValidator(500)]),
                ),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="catalog.resource",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["resource", "start_at", "end_at"], name="booking_resource_range_idx"),
                    models.Index(fields=["status"], name="booking_status_idx"),
                    models.Index(fields=["user", "status"], name="booking_user_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_at__gt", models.F("start_at"))),
                        name="booking_end_after_start",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("party_size__gte", 1)),
                        name="booking_party_size_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("user__isnull", False), ("guest_email", "")),
                            models.Q(("user__isnull", True), models.Q(("guest_email", ""), _negated=True)),
                            _connector="OR",
                        ),
                        name="booking_single_requester",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("slot_date__isnull", True), ("slot_time__isnull", True)),
                            models.Q(("slot_date__isnull", False), ("slot_time__isnull", False)),
                            _connector="OR",
                        ),
                        name="booking_slot_complete",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("slot_date__isnull", False),
                            models.Q(("status", "cancelled"), _negated=True),
                        ),
                        fields=("resource", "slot_date", "slot_time"),
                        name="booking_unique_active_slot",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_id", models.UUIDField(editable=False, unique=True)),
                ("event_type", models.CharField(max_length=64)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("occurred_at", models.DateTimeField()),
                ("recorded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="events",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking event",
                "verbose_name_plural": "Booking events",
                "ordering": ["occurred_at", "id"],
                "indexes": [
                    models.Index(fields=["booking", "occurred_at"], name="booking_event_booking_idx"),
                ],
            },
        ),
    ]
