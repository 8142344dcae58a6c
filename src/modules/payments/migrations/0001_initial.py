import django.core.validators
import django.db.models.deletion
import uuid6
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("gateway_payment_id", models.CharField(max_length=128, unique=True)),
                (
                    "gateway_order_id",
                    models.CharField(blank=True, default="", max_length=128),
                ),
                (
                    "signature",
                    models.CharField(blank=True, default="", max_length=256),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("currency", models.CharField(max_length=3)),
                (
                    "is_anomaly",
                    models.BooleanField(
                        default=False,
                        help_text="Order already had a payment with a different gateway id.",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "payments",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["order", "created_at"], name="payments_order_idx"
                    )
                ],
            },
        ),
    ]
