from django.apps import AppConfig


class ReturnsConfig(AppConfig):
    name = "modules.returns"
    label = "returns"
    verbose_name = "Returns"
