"""
Test suite for measurements
Tests: templates, validation, unit conversion and measurement endpoints
"""
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from atelier.core.models import EventLog
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.measurements.garment_templates import (
    CENTIMETERS, INCHES, build_measurement_set, convert_measurements, get_measurement_template,
    validate_measurements,
)
from atelier.measurements.models import Measurement

PANTS_VALUES = {'waist': 32, 'hip': 40, 'inseam': 30.5, 'outseam': 41}


class MeasurementTemplateTests(SimpleTestCase):
    """Test template lookup, validation and conversion"""

    def test_template_lookup(self):
        self.assertEqual(get_measurement_template('Jeans').key, 'pants')
        self.assertEqual(get_measurement_template('blouse').key, 'shirt')
        self.assertEqual(get_measurement_template('Evening Dress').key, 'dress')
        self.assertEqual(get_measurement_template('kilt').key, 'dress')
        self.assertEqual(get_measurement_template(None).key, 'dress')

    def test_build_set(self):
        measurement_set = build_measurement_set('pants', PANTS_VALUES, notes={'waist': 'Snug'})
        self.assertEqual(measurement_set['template'], 'pants')
        points = {p['key']: p for p in measurement_set['points']}
        self.assertEqual(points['inseam']['value'], 30.5)
        self.assertEqual(points['waist']['notes'], 'Snug')
        self.assertIsNone(points['knee']['value'])

    def test_build_set_unknown_unit(self):
        with self.assertRaises(ValueError):
            build_measurement_set('pants', PANTS_VALUES, unit='feet')

    def test_valid_set(self):
        self.assertEqual(validate_measurements(build_measurement_set('pants', PANTS_VALUES)), [])

    def test_required_points(self):
        errors = validate_measurements(build_measurement_set('pants', {**PANTS_VALUES, 'waist': None, 'hip': 0}))
        self.assertEqual(errors, ['Waist is required', 'Hip is required'])

    def test_negative_and_large_values(self):
        errors = validate_measurements(build_measurement_set('pants', {**PANTS_VALUES, 'knee': -2, 'outseam': 120}))
        self.assertIn('Knee cannot be negative', errors)
        self.assertIn('Outseam seems unusually large (120 inches)', errors)

    def test_large_limit_in_centimeters(self):
        cm_values = {'waist': 81, 'hip': 105, 'inseam': 77, 'outseam': 104}
        self.assertEqual(validate_measurements(build_measurement_set('pants', cm_values, unit=CENTIMETERS)), [])

        errors = validate_measurements(build_measurement_set('pants', {**cm_values, 'outseam': 260}, unit=CENTIMETERS))
        self.assertEqual(errors, ['Outseam seems unusually large (260 centimeters)'])

    def test_convert(self):
        measurement_set = build_measurement_set('pants', {**PANTS_VALUES, 'waist': 10})
        converted = convert_measurements(measurement_set, CENTIMETERS)
        points = {p['key']: p for p in converted['points']}
        self.assertEqual(points['waist']['value'], 25.4)
        self.assertEqual(points['waist']['unit'], CENTIMETERS)
        self.assertIsNone(points['knee']['value'])
        self.assertEqual(converted['unit'], CENTIMETERS)

        back = convert_measurements(converted, INCHES)
        self.assertEqual({p['key']: p for p in back['points']}['waist']['value'], 10.0)

    def test_convert_same_unit(self):
        measurement_set = build_measurement_set('pants', PANTS_VALUES)
        self.assertIs(convert_measurements(measurement_set, INCHES), measurement_set)


class MeasurementAPITests(TestCase):
    """Test measurement endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order()
        self.garment = TestDataFactory.create_garment(self.order, garment_type='Pants')

    def _payload(self, **overrides):
        data = {'order_id': self.order.id, 'garment_id': self.garment.id, 'values': PANTS_VALUES}
        data.update(overrides)
        return data

    def test_record_measurements(self):
        response = self.client.post('/api/v1/measurements/', self._payload(notes='First fitting'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['taken_by'], self.user.id)
        self.assertEqual(response.data['measurements']['template'], 'pants')

        measurement = Measurement.objects.get()
        self.assertEqual(measurement.garment, self.garment)
        event = EventLog.objects.get(entity='measurement', action='created')
        self.assertEqual(event.details['point_count'], 6)
        self.assertEqual(event.actor, self.user)

    def test_invalid_measurements(self):
        response = self.client.post('/api/v1/measurements/', self._payload(values={'waist': 32}), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Hip is required', response.data['details'])
        self.assertFalse(Measurement.objects.exists())

    def test_garment_must_belong_to_order(self):
        other_garment = TestDataFactory.create_garment(TestDataFactory.create_order())
        response = self.client.post('/api/v1/measurements/', self._payload(garment_id=other_garment.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        self.client.post('/api/v1/measurements/', self._payload(), format='json')
        other = TestDataFactory.create_order()
        other_garment = TestDataFactory.create_garment(other)
        self.client.post('/api/v1/measurements/', self._payload(order_id=other.id, garment_id=other_garment.id), format='json')

        response = self.client.get(f'/api/v1/measurements/?order_id={self.order.id}')
        self.assertEqual([m['garment'] for m in response.data], [self.garment.id])
        response = self.client.get(f'/api/v1/measurements/?garment_id={other_garment.id}')
        self.assertEqual(len(response.data), 1)

    def test_detail_in_centimeters(self):
        created = self.client.post('/api/v1/measurements/', self._payload(), format='json')
        response = self.client.get(f"/api/v1/measurements/{created.data['id']}/?unit=centimeters")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        waist = {p['key']: p for p in response.data['measurements']['points']}['waist']
        self.assertEqual(waist['value'], 81.28)

        response = self.client.get(f"/api/v1/measurements/{created.data['id']}/?unit=feet")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_templates(self):
        response = self.client.get('/api/v1/measurements/templates/')
        self.assertEqual({t['key'] for t in response.data}, {'dress', 'pants', 'shirt', 'skirt'})
        response = self.client.get('/api/v1/measurements/templates/?garment_type=jeans')
        self.assertEqual(response.data['key'], 'pants')
