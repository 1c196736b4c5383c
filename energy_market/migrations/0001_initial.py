from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Consumer",
            fields=[
                ("principal", models.CharField(max_length=128, primary_key=True, serialize=False)),
                ("energy_consumed", models.PositiveBigIntegerField(default=0)),
                ("total_spent", models.PositiveBigIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="Producer",
            fields=[
                ("principal", models.CharField(max_length=128, primary_key=True, serialize=False)),
                ("energy_available", models.PositiveBigIntegerField()),
                ("energy_price", models.PositiveBigIntegerField()),
                ("pending_revenue", models.PositiveBigIntegerField(default=0)),
                ("rating_sum", models.PositiveBigIntegerField(default=0)),
                ("rating_count", models.PositiveBigIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="PurchaseRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("units_bought", models.PositiveBigIntegerField(default=0)),
                ("amount_paid", models.PositiveBigIntegerField(default=0)),
                ("consumer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="purchases", to="energy_market.consumer")),
                ("producer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sales", to="energy_market.producer")),
            ],
        ),
        migrations.AddConstraint(
            model_name="purchaserecord",
            constraint=models.UniqueConstraint(fields=("consumer", "producer"), name="unique_purchase_per_pair"),
        ),
    ]
