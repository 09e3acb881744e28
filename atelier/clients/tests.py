"""
Test suite for Clients module
"""
from django.test import TestCase
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.clients.models import Client


class ClientAPITests(TestCase):
    """Test client endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='clerk')
        self.owner = TestDataFactory.create_owner()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_client(self):
        data = {'first_name': 'Luc', 'last_name': 'Gagnon', 'phone': '4185550123', 'language': 'en'}
        response = self.client.post('/api/v1/clients/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['full_name'], 'Luc Gagnon')
        self.assertEqual(response.data['order_count'], 0)

    def test_create_client_needs_contact(self):
        response = self.client.post('/api/v1/clients/', {'first_name': 'Luc', 'last_name': 'Gagnon'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search(self):
        TestDataFactory.create_client(first_name='Sophie', last_name='Bouchard', phone='5145550001')
        TestDataFactory.create_client(first_name='Marc', last_name='Cote', phone='4505550002')
        response = self.client.get('/api/v1/clients/?q=bouch')
        self.assertEqual([c['last_name'] for c in response.data], ['Bouchard'])

        response = self.client.get('/api/v1/clients/?q=(450) 555')
        self.assertEqual([c['last_name'] for c in response.data], ['Cote'])

    def test_order_count(self):
        client = TestDataFactory.create_client()
        TestDataFactory.create_order(client=client)
        TestDataFactory.create_order(client=client)
        response = self.client.get(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.data['order_count'], 2)

    def test_update_client(self):
        client = TestDataFactory.create_client()
        response = self.client.patch(f'/api/v1/clients/{client.id}/', {'notes': 'Prefers mornings'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        client.refresh_from_db()
        self.assertEqual(client.notes, 'Prefers mornings')

    def test_delete_requires_owner(self):
        client = TestDataFactory.create_client()
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.owner)
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Client.objects.filter(pk=client.id).exists())

    def test_delete_refused_with_orders(self):
        client = TestDataFactory.create_client()
        TestDataFactory.create_order(client=client)
        self.client.authenticate_user(self.owner)
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_orders(self):
        client = TestDataFactory.create_client()
        order = TestDataFactory.create_order(client=client, task_stages=['pending'])
        response = self.client.get(f'/api/v1/clients/{client.id}/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['id'], order.id)
        self.assertEqual(len(response.data[0]['tasks']), 1)
