import django_filters
from django.db.models import Q
from django.utils import timezone
from .models import Order
from .stage_transitions import OrderStatus


class OrderFilter(django_filters.FilterSet):
    """Board filters for orders"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.MultipleChoiceFilter(choices=OrderStatus.choices)
    type = django_filters.ChoiceFilter(choices=Order.TYPE_CHOICES)
    rush = django_filters.BooleanFilter(field_name='rush')
    due_today = django_filters.BooleanFilter(method='filter_due_today', label='Due Today')
    overdue = django_filters.BooleanFilter(method='filter_overdue', label='Overdue')
    assignee = django_filters.NumberFilter(method='filter_assignee', label='Assignee')
    client = django_filters.NumberFilter(field_name='client_id')
    due_from = django_filters.DateFilter(field_name='due_date', lookup_expr='gte')
    due_to = django_filters.DateFilter(field_name='due_date', lookup_expr='lte')

    class Meta:
        model = Order
        fields = ['search', 'status', 'type', 'rush', 'due_today', 'overdue', 'assignee', 'client', 'due_from', 'due_to']

    def filter_search(self, queryset, name, value):
        """Order number, client name or phone, garment type"""
        value = value.strip()
        if not value:
            return queryset
        condition = (
            Q(client__first_name__icontains=value) |
            Q(client__last_name__icontains=value) |
            Q(client__phone__icontains=value) |
            Q(garments__type__icontains=value)
        )
        number = value.upper().replace('ORD-', '').lstrip('#')
        if number.isdigit():
            condition |= Q(order_number=int(number))
        return queryset.filter(condition).distinct()

    def filter_due_today(self, queryset, name, value):
        if value:
            return queryset.filter(due_date=timezone.localdate())
        return queryset

    def filter_overdue(self, queryset, name, value):
        if value:
            return queryset.filter(due_date__lt=timezone.localdate()).exclude(
                status__in=[OrderStatus.DELIVERED, OrderStatus.ARCHIVED]
            )
        return queryset

    def filter_assignee(self, queryset, name, value):
        return queryset.filter(tasks__assignee_id=value).distinct()
