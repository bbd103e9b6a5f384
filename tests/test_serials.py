"""
Tests for serial number issuing from the Serial Numbers counter cell.
"""
import unittest

from sheet_fakes import DATA_ID, build_client

from orders.errors import StoreUnavailable
from orders.serials import SerialGenerator, parse_serial_number
from sheets.store import TabularStore


class TestParseSerialNumber(unittest.TestCase):

    def test_prefixed(self):
        self.assertEqual(parse_serial_number('AA12'), 12)
        self.assertEqual(parse_serial_number('aa7'), 7)

    def test_bare_number(self):
        self.assertEqual(parse_serial_number('12'), 12)
        self.assertEqual(parse_serial_number(12), 12)

    def test_non_conforming_is_zero(self):
        self.assertEqual(parse_serial_number(''), 0)
        self.assertEqual(parse_serial_number(None), 0)
        self.assertEqual(parse_serial_number('AA'), 0)
        self.assertEqual(parse_serial_number('XX9'), 0)
        self.assertEqual(parse_serial_number('AA-3'), 0)


class TestSerialGenerator(unittest.TestCase):

    def setUp(self):
        self.client, self.master, self.data = build_client()
        self.store = TabularStore.from_client(self.client)
        self.counter = self.data.sheets['Serial Numbers']

    def test_fresh_counter_starts_at_one(self):
        serials = SerialGenerator(self.store, fail_on_read_error=False)
        self.assertEqual(serials.next_serial(DATA_ID), 'AA1')
        self.assertEqual(self.counter.cell(2, 2), 'AA1')

    def test_increments(self):
        self.counter.set_cell(2, 2, 'AA41')
        serials = SerialGenerator(self.store, fail_on_read_error=False)
        self.assertEqual(serials.next_serial(DATA_ID), 'AA42')
        self.assertEqual(serials.next_serial(DATA_ID), 'AA43')

    def test_malformed_counter_restarts(self):
        self.counter.set_cell(2, 2, 'garbage')
        serials = SerialGenerator(self.store, fail_on_read_error=False)
        self.assertEqual(serials.next_serial(DATA_ID), 'AA1')

    def test_read_failure_restarts_by_default(self):
        self.counter.set_cell(2, 2, 'AA41')
        original = self.store.read_cell

        def failing_read(store_id, range_spec):
            raise StoreUnavailable('timeout')

        self.store.read_cell = failing_read
        serials = SerialGenerator(self.store, fail_on_read_error=False)
        self.assertEqual(serials.next_serial(DATA_ID), 'AA1')
        self.store.read_cell = original
        self.assertEqual(self.counter.cell(2, 2), 'AA1')

    def test_read_failure_can_be_fatal(self):
        self.data.failing.add('Serial Numbers')
        serials = SerialGenerator(self.store, fail_on_read_error=True)
        with self.assertRaises(StoreUnavailable):
            serials.next_serial(DATA_ID)


if __name__ == '__main__':
    unittest.main()
