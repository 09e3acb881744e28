"""
Outbound webhooks to the SMS and CRM automation endpoints.

Calls are best effort: every function returns a result dict and never
raises, so a notification failure cannot fail the request that triggered it.
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

SMS_ACTION_ADD = 'add'
SMS_ACTION_REMOVE = 'remove'


def _post_json(url, payload):
    timeout = getattr(settings, 'OUTBOUND_WEBHOOK_TIMEOUT', 10)
    response = requests.post(url, json=payload, timeout=timeout)
    response.raise_for_status()
    try:
        return response.json()
    except ValueError:
        return {}


def send_sms_notification(contact_id, action):
    """
    Add or remove a contact from the "order ready" SMS sequence

    Args:
        contact_id: CRM contact id of the client
        action: 'add' when the order becomes ready, 'remove' once delivered
    """
    url = getattr(settings, 'SMS_WEBHOOK_URL', '')
    if not url:
        logger.info(f"SMS webhook not configured, skipping {action} for contact {contact_id}")
        return {'success': False, 'skipped': True, 'error': 'SMS webhook not configured'}

    payload = {'contactId': contact_id, 'action': action}
    try:
        logger.info(f"Sending SMS notification: {payload}")
        data = _post_json(url, payload)
        logger.info(f"SMS notification sent for contact {contact_id}")
        return {'success': True, 'data': data}
    except requests.exceptions.RequestException as e:
        logger.error(f"SMS webhook error for contact {contact_id}: {str(e)}")
        return {'success': False, 'error': str(e)}


def format_client_for_crm(client):
    return {
        'name': f"{client.first_name} {client.last_name}".strip(),
        'email': client.email or '',
        'phone': client.phone or '',
        'preference': 'Email' if client.preferred_contact == 'email' else 'Text Messages',
    }


def upsert_crm_contact(client):
    """
    Create or update the client in the CRM and return the result

    On success the dict carries 'contact_id' taken from the response
    (contactId or contact_id).
    """
    url = getattr(settings, 'CRM_WEBHOOK_URL', '')
    if not url:
        return {'success': False, 'skipped': True, 'error': 'CRM webhook not configured'}

    try:
        data = _post_json(url, format_client_for_crm(client))
        contact_id = (data.get('contactId') or data.get('contact_id')) if isinstance(data, dict) else None
        logger.info(f"CRM contact upserted for client {client.id}: {contact_id}")
        return {'success': True, 'data': data, 'contact_id': contact_id}
    except requests.exceptions.RequestException as e:
        logger.error(f"CRM webhook error for client {client.id}: {str(e)}")
        return {'success': False, 'error': str(e)}


def sync_client_contact(client):
    """Upsert the client in the CRM and store the returned contact id"""
    if client.ghl_contact_id:
        return client.ghl_contact_id
    result = upsert_crm_contact(client)
    contact_id = result.get('contact_id')
    if contact_id:
        client.ghl_contact_id = contact_id
        client.save(update_fields=['ghl_contact_id', 'updated_at'])
    return contact_id
