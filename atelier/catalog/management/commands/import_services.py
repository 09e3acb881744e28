"""
Management command to import the service price list from CSV or JSON
"""
import json
import os
from django.core.management.base import BaseCommand, CommandError
from atelier.catalog.importers import import_services, parse_price_csv, PriceListError


class Command(BaseCommand):
    help = "Imports services from a CSV (prices in dollars) or JSON (prices in cents) price list"

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Path to the .csv or .json price list')
        parser.add_argument(
            '--replace',
            action='store_true',
            help='Remove services that are not in the price list',
        )

    def handle(self, *args, **options):
        path = options['path']
        if not os.path.exists(path):
            raise CommandError(f"File not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()

        try:
            if path.lower().endswith('.json'):
                rows = json.loads(content)
                if isinstance(rows, dict):
                    rows = rows.get('services', [])
            else:
                rows = parse_price_csv(content)
        except (ValueError, PriceListError) as e:
            raise CommandError(f"Could not read price list: {e}")

        self.stdout.write(f"Importing {len(rows)} services from {path}")
        result = import_services(rows, replace_existing=options['replace'])

        for warning in result['warnings']:
            self.stdout.write(self.style.WARNING(warning))
        for error in result['errors']:
            self.stdout.write(self.style.ERROR(error))

        summary = f"Imported {result['imported']} ({result['created']} created, {result['updated']} updated)"
        if result['success']:
            self.stdout.write(self.style.SUCCESS(summary))
        else:
            raise CommandError(f"{summary} with {len(result['errors'])} error(s)")
