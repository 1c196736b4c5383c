from django.apps import AppConfig


class EnergyMarketConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "energy_market"
    verbose_name = "Energy Marketplace Ledger"
