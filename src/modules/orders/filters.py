import django_filters

from modules.orders.models import ExportOrder


class ExportOrderFilter(django_filters.FilterSet):
    trade_term = django_filters.CharFilter(field_name="trade_term", lookup_expr="iexact")
    order_type = django_filters.CharFilter(field_name="order_type", lookup_expr="iexact")
    customer = django_filters.CharFilter(field_name="customer_name", lookup_expr="icontains")
    activated = django_filters.BooleanFilter(field_name="activated_at", lookup_expr="isnull", exclude=True)
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = ExportOrder
        fields = [
            "trade_term",
            "order_type",
            "customer",
            "activated",
            "start_date",
            "end_date",
        ]
