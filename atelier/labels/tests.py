"""
Test suite for labels
Tests: QR values, label codes, scan parsing and label endpoints
"""
import json

from django.test import SimpleTestCase, TestCase
from rest_framework import status

from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.labels.qr import (
    LABEL_CODE_ALPHABET, garment_qr_value, generate_qr_png, new_label_code, order_qr_value,
    parse_qr_value, status_qr_value,
)


class QRValueTests(SimpleTestCase):
    """Test label payloads"""

    def test_order_value(self):
        self.assertEqual(order_qr_value(42), 'ORD-42')

    def test_garment_value(self):
        self.assertEqual(garment_qr_value('AB12CD34'), 'GARM-AB12CD34')
        self.assertEqual(garment_qr_value('AB12CD34EXTRA'), 'GARM-AB12CD34')

    def test_status_value(self):
        payload = json.loads(status_qr_value(7, 'ready', '2024-03-01T10:00:00Z'))
        self.assertEqual(payload, {
            'type': 'order_status', 'order_number': 7, 'status': 'ready', 'timestamp': '2024-03-01T10:00:00Z'
        })

    def test_label_code_alphabet(self):
        code = new_label_code()
        self.assertEqual(len(code), 8)
        self.assertTrue(all(ch in LABEL_CODE_ALPHABET for ch in code))
        for lookalike in '01IO':
            self.assertNotIn(lookalike, LABEL_CODE_ALPHABET)

    def test_parse(self):
        self.assertEqual(parse_qr_value('ORD-15'), ('order', 15))
        self.assertEqual(parse_qr_value(' ord-15 '), ('order', 15))
        self.assertEqual(parse_qr_value('GARM-ab12cd34'), ('garment', 'AB12CD34'))
        self.assertEqual(parse_qr_value('ORD-abc'), (None, 'ORD-abc'))
        self.assertEqual(parse_qr_value(''), (None, ''))

    def test_png_data_url(self):
        self.assertTrue(generate_qr_png('ORD-1').startswith('data:image/png;base64,'))


class LabelAPITests(TestCase):
    """Test label endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order()

    def test_labels_need_garments(self):
        response = self.client.get(f'/api/v1/orders/{self.order.id}/labels/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_labels_without_images(self):
        garment = TestDataFactory.create_garment(self.order, label_code='WXYZ2345')
        response = self.client.get(f'/api/v1/orders/{self.order.id}/labels/?images=false')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        labels = response.data['labels']
        self.assertEqual(len(labels), 2)
        self.assertEqual(labels[0]['value'], f'ORD-{self.order.order_number}')
        self.assertEqual(labels[1]['value'], 'GARM-WXYZ2345')
        self.assertEqual(labels[1]['garment_id'], garment.id)
        self.assertIsNone(labels[1]['image'])

    def test_labels_with_images(self):
        TestDataFactory.create_garment(self.order)
        response = self.client.get(f'/api/v1/orders/{self.order.id}/labels/')
        self.assertTrue(response.data['labels'][0]['image'].startswith('data:image/png;base64,'))

    def test_scan_order(self):
        response = self.client.get(f'/api/v1/labels/scan/?value=ORD-{self.order.order_number}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['id'], self.order.id)

    def test_scan_garment(self):
        garment = TestDataFactory.create_garment(self.order, label_code='WXYZ2345')
        response = self.client.get('/api/v1/labels/scan/?value=GARM-WXYZ2345')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['garment']['id'], garment.id)

    def test_scan_unknown(self):
        response = self.client.get('/api/v1/labels/scan/?value=hello')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/labels/scan/?value=ORD-99999')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
