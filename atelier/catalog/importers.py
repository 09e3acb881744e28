"""
Price list import (CSV or JSON rows) into the service catalog.

Rows are upserted on (name, category). CSV files carry prices in dollars:

    name,category,price,description,estimated_minutes
    Pants Hem,hemming,15.00,Basic pants hemming,15
"""
import csv
import io
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils.text import slugify

from .models import Category, Service
from .serializers import ServiceImportRowSerializer

logger = logging.getLogger(__name__)


class PriceListError(ValueError):
    """The price list could not be parsed"""


def dollars_to_cents(value):
    try:
        return int((Decimal(str(value).replace('$', '').strip()) * 100).quantize(Decimal('1')))
    except (InvalidOperation, ValueError):
        raise PriceListError(f"Invalid price '{value}'")


def parse_price_csv(text):
    """Parse CSV text into import rows (prices converted to cents)"""
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames or not {'name', 'category', 'price'} <= {f.strip().lower() for f in reader.fieldnames}:
        raise PriceListError('CSV header must contain name, category and price columns')

    rows = []
    for line_number, raw in enumerate(reader, start=2):
        row = {(k or '').strip().lower(): (v or '').strip() for k, v in raw.items()}
        if not row.get('name'):
            continue
        try:
            price_cents = dollars_to_cents(row['price'])
        except PriceListError as e:
            raise PriceListError(f"Line {line_number}: {e}")
        rows.append({
            'name': row['name'],
            'category': row['category'],
            'base_price_cents': price_cents,
            'description': row.get('description') or None,
            'estimated_minutes': int(row['estimated_minutes']) if row.get('estimated_minutes', '').isdigit() else None,
            'is_custom': row.get('is_custom', '').lower() in ('1', 'true', 'yes'),
        })
    return rows


def _unique_code(name, category):
    base = slugify(f"{category}-{name}")[:45].upper() or 'SERVICE'
    code = base
    suffix = 2
    while Service.objects.filter(code=code).exists():
        code = f"{base}-{suffix}"
        suffix += 1
    return code


def import_services(rows, replace_existing=False):
    """
    Upsert services from already parsed rows

    Returns a result dict: success, imported, created, updated, errors, warnings.
    With replace_existing, services missing from the list are deleted, or
    deactivated when orders still reference them.
    """
    result = {
        'success': True,
        'imported': 0,
        'created': 0,
        'updated': 0,
        'errors': [],
        'warnings': [],
    }

    with transaction.atomic():
        seen_ids = set()
        for index, raw in enumerate(rows, start=1):
            serializer = ServiceImportRowSerializer(data=raw)
            if not serializer.is_valid():
                label = raw.get('name') if isinstance(raw, dict) else index
                result['errors'].append(f"Row {index} ({label}): {serializer.errors}")
                continue
            data = serializer.validated_data

            category_key = slugify(data['category']) or data['category']
            category, created = Category.objects.get_or_create(
                key=category_key,
                defaults={'name': data['category'].replace('-', ' ').title()}
            )
            if created:
                result['warnings'].append(f"Created missing category '{category_key}'")

            defaults = {
                'base_price_cents': data['base_price_cents'],
                'description': data.get('description'),
                'estimated_minutes': data.get('estimated_minutes'),
                'is_custom': data.get('is_custom', False),
                'is_active': True,
            }
            service = Service.objects.filter(name=data['name'], category=category.key).first()
            if service:
                for field, value in defaults.items():
                    setattr(service, field, value)
                service.save()
                result['updated'] += 1
            else:
                service = Service.objects.create(
                    name=data['name'],
                    category=category.key,
                    code=data.get('code') or _unique_code(data['name'], category.key),
                    **defaults
                )
                result['created'] += 1
            seen_ids.add(service.id)
            result['imported'] += 1

        if replace_existing and not result['errors']:
            stale = Service.objects.exclude(id__in=seen_ids)
            in_use = stale.filter(garment_services__isnull=False).distinct()
            deactivated = in_use.update(is_active=False)
            deleted, _ = stale.exclude(id__in=in_use.values('id')).delete()
            if deactivated:
                result['warnings'].append(f"Deactivated {deactivated} service(s) still referenced by orders")
            logger.info(f"Price list replace removed {deleted} service rows")

    if result['errors']:
        result['success'] = False
    logger.info(f"Imported {result['imported']} services ({result['created']} created, {result['updated']} updated, {len(result['errors'])} errors)")
    return result
