import django_filters

from modules.returns.constants import ReturnStatus
from modules.returns.models import Return


class ReturnFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=ReturnStatus.choices)
    order = django_filters.UUIDFilter(field_name="order_id")
    order_number = django_filters.CharFilter(
        field_name="order__order_number", lookup_expr="iexact"
    )
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Return
        fields = ["status", "order", "order_number", "start_date", "end_date"]
