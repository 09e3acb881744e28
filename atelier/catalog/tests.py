"""
Test suite for Catalog module
Tests: services, categories, garment types, price list import and list caching
"""
import tempfile

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from atelier.core.models import EventLog
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.catalog.importers import PriceListError, dollars_to_cents, import_services, parse_price_csv
from atelier.catalog.models import Category, GarmentType, Service


class ServiceAPITests(TestCase):
    """Test service endpoints"""

    def setUp(self):
        cache.clear()
        self.owner = TestDataFactory.create_owner()
        self.clerk = TestDataFactory.create_user(role='clerk')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)
        self.category = TestDataFactory.create_category(key='alterations')

    def test_list_active_services(self):
        TestDataFactory.create_service(name='Hem')
        TestDataFactory.create_service(name='Old', is_active=False)
        response = self.client.get('/api/v1/services/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['name'] for s in response.data], ['Hem'])

        response = self.client.get('/api/v1/services/?include_inactive=true')
        self.assertEqual(len(response.data), 2)

    def test_list_cache_is_invalidated_on_save(self):
        TestDataFactory.create_service(name='Hem')
        self.assertEqual(len(self.client.get('/api/v1/services/').data), 1)
        TestDataFactory.create_service(name='Zipper')
        self.assertEqual(len(self.client.get('/api/v1/services/').data), 2)

    def test_create_service(self):
        data = {'code': 'HEM', 'name': 'Hem', 'base_price_cents': 1500, 'category': 'alterations'}
        response = self.client.post('/api/v1/services/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_create_service_unknown_category(self):
        data = {'code': 'HEM', 'name': 'Hem', 'base_price_cents': 1500, 'category': 'nope'}
        response = self.client.post('/api/v1/services/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_service_requires_owner(self):
        self.client.authenticate_user(self.clerk)
        data = {'code': 'HEM', 'name': 'Hem', 'base_price_cents': 1500}
        response = self.client.post('/api/v1/services/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_price_change_is_logged(self):
        service = TestDataFactory.create_service(base_price_cents=1500)
        response = self.client.patch(f'/api/v1/services/{service.id}/', {'base_price_cents': 1800}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        event = EventLog.objects.get(entity='service', action='price_changed')
        self.assertEqual(event.details, {'old_price_cents': 1500, 'new_price_cents': 1800})
        self.assertEqual(event.actor, self.owner)

    def test_delete_unused_service(self):
        service = TestDataFactory.create_service()
        response = self.client.delete(f'/api/v1/services/{service.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Service.objects.filter(pk=service.id).exists())

    def test_delete_used_service_deactivates(self):
        service = TestDataFactory.create_service()
        order = TestDataFactory.create_order()
        TestDataFactory.create_garment_service(TestDataFactory.create_garment(order), service=service)
        response = self.client.delete(f'/api/v1/services/{service.id}/')
        self.assertTrue(response.data['deactivated'])
        service.refresh_from_db()
        self.assertFalse(service.is_active)

    def test_bulk_delete(self):
        used = TestDataFactory.create_service()
        unused = TestDataFactory.create_service()
        order = TestDataFactory.create_order()
        TestDataFactory.create_garment_service(TestDataFactory.create_garment(order), service=used)
        response = self.client.post('/api/v1/services/bulk-delete/', {'service_ids': [used.id, unused.id]}, format='json')
        self.assertEqual(response.data, {'deleted_count': 1, 'deactivated_count': 1})

    def test_bulk_delete_requires_owner(self):
        self.client.authenticate_user(self.clerk)
        response = self.client.post('/api/v1/services/bulk-delete/', {'service_ids': [1]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_move_category(self):
        TestDataFactory.create_category(key='hemming')
        service = TestDataFactory.create_service(category='alterations')
        data = {'from_category': 'alterations', 'to_category': 'hemming'}
        response = self.client.post('/api/v1/services/move-category/', data, format='json')
        self.assertEqual(response.data['moved_count'], 1)
        service.refresh_from_db()
        self.assertEqual(service.category, 'hemming')

    def test_import_csv_text(self):
        csv_text = 'name,category,price\nPants Hem,hemming,15.00\nZipper,alterations,22.50\n'
        response = self.client.post('/api/v1/services/import/', {'csv': csv_text}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 2)
        self.assertEqual(Service.objects.get(name='Zipper').base_price_cents, 2250)
        self.assertTrue(Category.objects.filter(key='hemming').exists())

    def test_import_bad_csv(self):
        response = self.client.post('/api/v1/services/import/', {'csv': 'foo,bar\n1,2\n'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CategoryAPITests(TestCase):
    """Test category endpoints"""

    def setUp(self):
        self.owner = TestDataFactory.create_owner()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.owner)

    def test_rename_key_moves_services(self):
        category = TestDataFactory.create_category(key='hems')
        service = TestDataFactory.create_service(category='hems')
        response = self.client.patch(f'/api/v1/categories/{category.id}/', {'key': 'hemming'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        service.refresh_from_db()
        self.assertEqual(service.category, 'hemming')

    def test_delete_with_services_refused(self):
        category = TestDataFactory.create_category(key='hems')
        TestDataFactory.create_service(category='hems')
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_service_count(self):
        TestDataFactory.create_category(key='hems')
        TestDataFactory.create_service(category='hems')
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.data[0]['service_count'], 1)


class GarmentTypeAPITests(TestCase):
    """Test garment type endpoints"""

    def test_clerk_created_types_are_custom(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user(role='clerk'))
        response = client.post('/api/v1/garment-types/', {'code': 'kilt', 'name': 'Kilt'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(GarmentType.objects.get(code='kilt').is_custom)

    def test_used_type_is_deactivated(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_owner())
        garment_type = TestDataFactory.create_garment_type()
        garment = TestDataFactory.create_garment(TestDataFactory.create_order())
        garment.garment_type = garment_type
        garment.save()
        response = client.delete(f'/api/v1/garment-types/{garment_type.id}/')
        self.assertTrue(response.data['deactivated'])


class PriceListImportTests(TestCase):
    """Test price list parsing and upserts"""

    def test_dollars_to_cents(self):
        self.assertEqual(dollars_to_cents('15.00'), 1500)
        self.assertEqual(dollars_to_cents('$22.5'), 2250)
        with self.assertRaises(PriceListError):
            dollars_to_cents('abc')

    def test_parse_reports_line(self):
        with self.assertRaises(PriceListError) as ctx:
            parse_price_csv('name,category,price\nHem,hemming,oops\n')
        self.assertIn('Line 2', str(ctx.exception))

    def test_upsert_by_name_and_category(self):
        import_services([{'name': 'Hem', 'category': 'hemming', 'base_price_cents': 1500}])
        result = import_services([{'name': 'Hem', 'category': 'hemming', 'base_price_cents': 1700}])
        self.assertEqual(result['updated'], 1)
        self.assertEqual(Service.objects.get().base_price_cents, 1700)

    def test_invalid_rows_are_reported(self):
        result = import_services([{'name': 'Hem', 'category': 'hemming'}])
        self.assertFalse(result['success'])
        self.assertEqual(len(result['errors']), 1)

    def test_replace_existing(self):
        stale = TestDataFactory.create_service(name='Old')
        import_services([{'name': 'Hem', 'category': 'hemming', 'base_price_cents': 1500}], replace_existing=True)
        self.assertFalse(Service.objects.filter(pk=stale.id).exists())

    def test_management_command(self):
        with tempfile.NamedTemporaryFile('w', suffix='.csv', delete=False) as handle:
            handle.write('name,category,price\nPants Hem,hemming,15.00\n')
        call_command('import_services', handle.name)
        self.assertTrue(Service.objects.filter(name='Pants Hem').exists())
