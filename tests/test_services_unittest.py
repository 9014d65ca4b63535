import os
import unittest
from unittest import mock
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import requests

from config import Settings
from errors import CheckoutRejectedError, NotFoundError, TransportError
from models import Product
from services import CatalogService, TransactionService

TEA = Product(1, '4901234567894', 'Tea', 150)


def make_response(status=200, body=None, bad_json=False):
    resp = mock.Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.url = 'http://pos.test/x'
    if bad_json:
        resp.json.side_effect = ValueError('no json')
    else:
        resp.json.return_value = body
    return resp


class CatalogServiceTests(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.settings = Settings(api_base_url='http://pos.test/', http_timeout=3)
        self.svc = CatalogService(self.settings, session=self.session)

    def test_found(self):
        self.session.get.return_value = make_response(
            body={'prd_id': 1, 'code': TEA.code, 'name': 'Tea', 'price': 150})
        self.assertEqual(self.svc.get_by_code(TEA.code), TEA)
        self.session.get.assert_called_once_with(
            'http://pos.test/api/products/code/4901234567894', timeout=3.0)

    def test_null_body_is_not_found(self):
        self.session.get.return_value = make_response(body=None)
        with self.assertRaises(NotFoundError):
            self.svc.get_by_code(TEA.code)

    def test_failure_status_is_not_found(self):
        self.session.get.return_value = make_response(status=404, body={'detail': 'x'})
        with self.assertRaises(NotFoundError):
            self.svc.get_by_code(TEA.code)

    def test_connection_error(self):
        self.session.get.side_effect = requests.ConnectionError('refused')
        with self.assertRaises(TransportError):
            self.svc.get_by_code(TEA.code)

    def test_timeout(self):
        self.session.get.side_effect = requests.Timeout('slow')
        with self.assertRaises(TransportError):
            self.svc.get_by_code(TEA.code)

    def test_bad_json(self):
        self.session.get.return_value = make_response(bad_json=True)
        with self.assertRaises(TransportError):
            self.svc.get_by_code(TEA.code)


class TransactionServiceTests(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.settings = Settings(api_base_url='http://pos.test', operator_id='E1',
                                 store_id='S1', terminal_id='T1')
        self.svc = TransactionService(self.settings, session=self.session)

    def test_payload_shape(self):
        payload = self.svc.build_payload([TEA, TEA])
        self.assertEqual(payload['emp_cd'], 'E1')
        self.assertEqual(payload['store_cd'], 'S1')
        self.assertEqual(payload['pos_no'], 'T1')
        self.assertEqual(len(payload['details']), 2)
        self.assertEqual(payload['details'][0], {
            'prd_id': 1, 'prd_code': TEA.code, 'prd_name': 'Tea', 'prd_price': 150})

    def test_submit_success(self):
        self.session.post.return_value = make_response(body={'success': True, 'total_amount': 300, 'trd_id': 9})
        result = self.svc.submit([TEA, TEA])
        self.assertEqual(result.total_amount, 300)
        self.assertEqual(result.transaction_id, 9)
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], 'http://pos.test/api/transactions')
        self.assertEqual(len(kwargs['json']['details']), 2)

    def test_submit_without_total(self):
        self.session.post.return_value = make_response(body={'success': True})
        result = self.svc.submit([TEA])
        self.assertIsNone(result.total_amount)
        self.assertIsNone(result.transaction_id)

    def test_non_integer_total_ignored(self):
        self.session.post.return_value = make_response(body={'total_amount': '300'})
        with self.assertLogs('services', level='WARNING'):
            result = self.svc.submit([TEA])
        self.assertIsNone(result.total_amount)

    def test_negative_total_ignored(self):
        self.session.post.return_value = make_response(body={'total_amount': -5, 'trd_id': 7})
        with self.assertLogs('services', level='WARNING'):
            result = self.svc.submit([TEA])
        self.assertIsNone(result.total_amount)
        self.assertEqual(result.transaction_id, 7)

    def test_rejected(self):
        self.session.post.return_value = make_response(status=500)
        with self.assertRaises(CheckoutRejectedError) as ctx:
            self.svc.submit([TEA])
        self.assertEqual(ctx.exception.status_code, 500)

    def test_transport_error(self):
        self.session.post.side_effect = requests.ConnectionError('down')
        with self.assertRaises(TransportError):
            self.svc.submit([TEA])

    def test_bad_json(self):
        self.session.post.return_value = make_response(bad_json=True)
        with self.assertRaises(TransportError):
            self.svc.submit([TEA])


if __name__ == '__main__':
    unittest.main()
