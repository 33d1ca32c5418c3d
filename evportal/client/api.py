"""
HTTP client for the dealer portal API.

Every call goes through ``PortalClient._request`` which attaches the session
token, applies the session timeout and maps failures onto the portal error
taxonomy (``evportal.core.exceptions``). GET requests are retried with
exponential backoff on 502/503/504; writes are never retried.
"""
import logging
from collections import namedtuple
from datetime import date

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from evportal.core.exceptions import (
    ERRORS_BY_CODE, AlreadyConvertedError, AuthError, ConflictError, NotFoundError, PortalError,
    PreconditionError, TransientError, ValidationError, QUOTATION_IN_USE_MESSAGE,
)
from evportal.pricing import validators

logger = logging.getLogger(__name__)

DEFAULT_GET_RETRIES = 3

ERRORS_BY_STATUS = {
    400: ValidationError,
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    409: ConflictError,
    422: PreconditionError,
}


class PromotionRecord(namedtuple('PromotionRecord', [
    'promotion_id', 'promotion_code', 'option_name', 'option_value', 'start_date', 'end_date',
])):
    """Client-side view of a promotion, usable with ``evportal.pricing.validators``"""
    __slots__ = ()

    @classmethod
    def from_wire(cls, data):
        return cls(
            promotion_id=data.get('promotionId'),
            promotion_code=data.get('promotionCode') or '',
            option_name=data.get('optionName') or '',
            option_value=data.get('optionValue'),
            start_date=validators.as_date(data.get('startDate')),
            end_date=validators.as_date(data.get('endDate')),
        )


def unwrap(body):
    """Return the payload of an envelope, or the body itself when it is not one"""
    if isinstance(body, dict) and 'data' in body:
        return body['data']
    return body


def unwrap_list(body):
    """List endpoints answer either ``{data: [...]}`` or a bare array"""
    data = unwrap(body)
    if data is None:
        return []
    if not isinstance(data, list):
        raise PortalError(f'Expected a list from the portal API, got {type(data).__name__}')
    return data


def get_retry_session(retries=DEFAULT_GET_RETRIES, backoff_factor=0.5):
    """``requests.Session`` that retries idempotent GETs only"""
    retry = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(502, 503, 504),
        allowed_methods=frozenset({'GET'}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    return session


class PortalClient:
    """
    Quotation, order, promotion and inventory operations against the portal API.

    ``http`` is any ``requests.Session``-compatible object; when omitted a
    retrying session is created.
    """

    def __init__(self, session, http=None):
        self.session = session
        self.http = http if http is not None else get_retry_session()

    # ---- transport ----

    def _request(self, method, path, params=None, json=None):
        url = self.session.url(path)
        timeout = self.session.timeout
        try:
            response = self.http.request(
                method, url, params=params, json=json, headers=self.session.headers(), timeout=timeout,
            )
        except requests.exceptions.Timeout:
            logger.warning(f"{method} {path} timed out after {timeout}s")
            raise TransientError(f'The portal API did not answer within {timeout} seconds.')
        except requests.exceptions.ConnectionError as e:
            logger.warning(f"{method} {path} failed to connect: {str(e)}")
            raise TransientError('Could not connect to the portal API.')

        if response.status_code >= 400:
            self._raise_for_response(response, method, path)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise PortalError(f'Invalid JSON in response to {method} {path}.')

    def _raise_for_response(self, response, method, path):
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}
        status = response.status_code
        message = body.get('message') or body.get('detail') or response.reason or f'HTTP {status}'
        errors = body.get('errors')

        logger.error(f"API request failed: {method} {path} - Status: {status} - {message}")

        if status == 401:
            self.session.clear()
            raise AuthError(message, status_code=401)

        # Older backends report quotation deletes blocked by an order as a 500
        if status >= 500 and method == 'DELETE' and path.startswith('Quotation') \
                and 'REFERENCE constraint' in (response.text or ''):
            raise ConflictError(QUOTATION_IN_USE_MESSAGE)

        code = body.get('code')
        if code == AlreadyConvertedError.code:
            raise AlreadyConvertedError(message, order_id=body.get('orderId'), errors=errors)
        error_class = ERRORS_BY_CODE.get(code)
        if error_class is None:
            error_class = TransientError if status >= 500 else ERRORS_BY_STATUS.get(status, PortalError)
        raise error_class(message, errors=errors, status_code=status)

    # ---- auth ----

    def login(self, username, password):
        body = self._request('POST', 'Auth/login', json={'username': username, 'password': password})
        self.session.set_tokens(body.get('access'), body.get('refresh'))
        logger.info(f"Logged in to portal API as {username}")
        return body.get('user')

    def refresh(self):
        if not self.session.refresh_token:
            self.session.clear()
            raise AuthError()
        body = self._request('POST', 'Auth/refresh', json={'refresh': self.session.refresh_token})
        self.session.set_tokens(body.get('access'), body.get('refresh'))
        return self.session.token

    def logout(self):
        self.session.clear()

    # ---- quotations ----

    def list_quotations(self, status=None, user_id=None, vehicle_id=None):
        params = {}
        if status:
            params['status'] = status
        if user_id is not None:
            params['userId'] = user_id
        if vehicle_id is not None:
            params['vehicleId'] = vehicle_id
        return unwrap_list(self._request('GET', 'Quotation', params=params or None))

    def get_quotation(self, quotation_id):
        return unwrap(self._request('GET', f'Quotation/{quotation_id}'))

    def create_quotation(self, payload, check_promotion=True):
        """
        Create a quotation; the server forces status PENDING and computes the
        final price. A promotion code is checked against the active
        promotions first so an invalid code fails before anything is sent.
        """
        code = payload.get('promotionCode')
        if check_promotion and validators.normalize_code(code):
            self.check_promotion(code)
        return unwrap(self._request('POST', 'SaleManagement/CreateQuotation', json=payload))

    def update_quotation(self, quotation_id, payload):
        return unwrap(self._request('PUT', f'Quotation/{quotation_id}', json=payload))

    def change_status(self, quotation_id, status, version=None):
        payload = {'status': status}
        if version is not None:
            payload['version'] = version
        return unwrap(self._request('PATCH', f'Quotation/{quotation_id}', json=payload))

    def delete_quotation(self, quotation_id):
        self._request('DELETE', f'Quotation/{quotation_id}')

    # ---- orders ----

    def create_order(self, quotation_id, delivery_address=None, attachment_image=None, attachment_file=None):
        """Convert a quotation; returns ``(order, warnings)``"""
        payload = {'quotationId': quotation_id}
        if delivery_address:
            payload['deliveryAddress'] = delivery_address
        if attachment_image:
            payload['attachmentImage'] = attachment_image
        if attachment_file:
            payload['attachmentFile'] = attachment_file
        body = self._request('POST', 'SaleManagement/CreateOrder', json=payload)
        warnings = body.get('warnings', []) if isinstance(body, dict) else []
        for warning in warnings:
            logger.warning(f"Quotation {quotation_id} converted with warning: {warning}")
        return unwrap(body), warnings

    def convert(self, quotation, delivery_address=None):
        """
        Convert ``quotation`` (a wire dict or an id) into an order.

        With a dict the status is checked locally first: only APPROVED
        quotations are sent to the server.
        """
        if isinstance(quotation, dict):
            status = str(quotation.get('status') or '').upper()
            quotation_id = quotation.get('quotationId')
            if status == 'CONVERTED':
                raise AlreadyConvertedError(f'Quotation {quotation_id} has already been converted to an order.')
            if status != 'APPROVED':
                raise PreconditionError('only approved quotations can be converted')
        else:
            quotation_id = quotation
        order, _ = self.create_order(quotation_id, delivery_address=delivery_address)
        return order

    def list_orders(self, status=None, user_id=None):
        params = {}
        if status:
            params['status'] = status
        if user_id is not None:
            params['userId'] = user_id
        return unwrap_list(self._request('GET', 'Order', params=params or None))

    def get_order(self, order_id):
        return unwrap(self._request('GET', f'Order/{order_id}'))

    def update_order(self, order_id, payload):
        return unwrap(self._request('PUT', f'Order/{order_id}', json=payload))

    def delete_order(self, order_id):
        self._request('DELETE', f'Order/{order_id}')

    # ---- promotions ----

    def list_promotions(self):
        return unwrap_list(self._request('GET', 'Promotion'))

    def active_promotions(self):
        return [PromotionRecord.from_wire(item) for item in unwrap_list(self._request('GET', 'Promotion/active'))]

    def check_promotion(self, code, now=None):
        """Validate ``code`` locally against the active promotions; returns the match or ``None`` for no code"""
        if not validators.normalize_code(code):
            return None
        return validators.require_valid_promotion(code, self.active_promotions(), now or date.today())

    def validate_promotion(self, code):
        """Server-side validation (``POST Promotion/validate``)"""
        data = unwrap(self._request('POST', 'Promotion/validate', json={'promotionCode': code}))
        return PromotionRecord.from_wire(data) if data else None

    def create_promotion(self, payload):
        return unwrap(self._request('POST', 'Promotion', json=payload))

    def update_promotion(self, promotion_id, payload):
        return unwrap(self._request('PUT', f'Promotion/{promotion_id}', json=payload))

    def delete_promotion(self, promotion_id):
        self._request('DELETE', f'Promotion/{promotion_id}')

    # ---- inventory ----

    def list_inventory(self, available_only=False):
        params = {'available': 'true'} if available_only else None
        return unwrap_list(self._request('GET', 'Inventory', params=params))

    def availability(self, vehicle_id):
        """``{quantity, available, ...}``; read failures other than auth degrade to not available"""
        try:
            return unwrap(self._request('GET', f'Inventory/{vehicle_id}'))
        except AuthError:
            raise
        except PortalError as e:
            logger.warning(f"Inventory lookup for vehicle {vehicle_id} failed: {e.message}")
            return {'vehicleId': vehicle_id, 'quantity': 0, 'available': False, 'status': 'out_of_stock', 'source': 'default'}

    def set_inventory(self, vehicle_id, quantity):
        return unwrap(self._request('PUT', f'Inventory/{vehicle_id}/update', json={'quantity': quantity}))

    def create_inventory(self, vehicle_id, quantity=0):
        return unwrap(self._request('POST', f'Inventory/{vehicle_id}/create', json={'quantity': quantity}))

    def dispatch(self, vehicle_id, quantity, dealer_id, color):
        payload = {'vehicleId': vehicle_id, 'quantity': quantity, 'dealerId': dealer_id, 'color': color}
        return unwrap(self._request('POST', 'Inventory/dispatch', json=payload))

    def dispatch_report(self, from_date=None, to_date=None, dealer_id=None, vehicle_id=None):
        """Dispatches between two calendar days (inclusive), newest first"""
        params = {}
        if from_date:
            params['fromDate'] = from_date.isoformat() if hasattr(from_date, 'isoformat') else from_date
        if to_date:
            params['toDate'] = to_date.isoformat() if hasattr(to_date, 'isoformat') else to_date
        if dealer_id:
            params['dealerId'] = dealer_id
        if vehicle_id:
            params['vehicleId'] = vehicle_id
        return unwrap_list(self._request('GET', 'Inventory/dispatch', params=params or None))
