"""
Tests for the order ledger: submission, move-and-clear transitions, edits,
returns and the current-month window.
"""
import unittest

from sheet_fakes import (
    DATA_ID,
    LAST_MONTH_TEXT,
    NOW_TEXT,
    build_client,
    fixed_clock,
    order_row,
)

from orders.errors import NoMatchingRows, StoreUnavailable, ValidationFailure
from orders.ledger import OrderLedger, parse_order_id, require_waiting
from orders.models import LogicalSheet, Order, UserInfo
from orders.serials import SerialGenerator
from sheets.store import TabularStore

BLANK = [''] * 11

AMR = UserInfo(username='amr', tab='ClientA', branch='Maadi', level='L1', budget_sheet_id=DATA_ID)
BOSS = UserInfo(username='boss', tab='ClientA', branch='', level='L2', budget_sheet_id=DATA_ID)

JUICE = {'productCode': 'P1', 'productName': 'Juice', 'unitPrice': 10, 'quantity': 3, 'category': 'Drinks'}


class LedgerTestCase(unittest.TestCase):

    def setUp(self):
        self.client, self.master, self.data = build_client()
        self.store = TabularStore.from_client(self.client)
        self.ledger = OrderLedger(
            self.store,
            serials=SerialGenerator(self.store, fail_on_read_error=False),
            clock=fixed_clock,
        )
        self.waiting = self.data.sheets['Waiting for Approval']
        self.final = self.data.sheets['Final Orders']
        self.cancelled = self.data.sheets['Cancelled Orders']


class TestSubmit(LedgerTestCase):

    def test_l1_submission_lands_in_waiting(self):
        serial = self.ledger.submit_order(AMR, 'Maadi', [dict(JUICE)])
        self.assertEqual(serial, 'AA1')
        self.assertEqual(
            self.waiting.rows[1],
            [NOW_TEXT, 'Maadi', 'amr', 'P1', 'Juice', 10, 30, 'Drinks', 3, '', 'AA1'],
        )
        self.assertEqual(len(self.final.rows), 1)

    def test_l2_submission_is_approved_directly(self):
        serial = self.ledger.submit_order(BOSS, 'Giza', [dict(JUICE)])
        self.assertEqual(self.final.rows[1][1], 'Giza')
        self.assertEqual(self.final.rows[1][10], serial)
        self.assertEqual(len(self.waiting.rows), 1)

    def test_serials_increase_per_submission(self):
        self.assertEqual(self.ledger.submit_order(AMR, 'Maadi', [dict(JUICE)]), 'AA1')
        self.assertEqual(self.ledger.submit_order(AMR, 'Maadi', [dict(JUICE)]), 'AA2')
        self.assertEqual(self.waiting.rows[2][10], 'AA2')

    def test_explicit_subtotal_and_lenient_numbers(self):
        items = [
            {'productCode': 'P2', 'productName': 'Chips', 'unitPrice': '5.5', 'quantity': '2', 'subtotal': 10},
            {'productCode': 'P3', 'productName': 'Water', 'unitPrice': 3, 'quantity': 0, 'subtotal': 9},
        ]
        self.ledger.submit_order(AMR, 'Maadi', items)
        self.assertEqual(self.waiting.rows[1][5:9], [5.5, 10, '', 2])
        # Zero quantity always has a zero subtotal
        self.assertEqual(self.waiting.rows[2][6], 0)
        self.assertEqual(self.waiting.rows[2][8], 0)

    def test_explicit_zero_subtotal_is_kept(self):
        self.ledger.submit_order(AMR, 'Maadi', [dict(JUICE, quantity=2, subtotal=0)])
        self.assertEqual(self.waiting.rows[1][6], 0)
        self.assertEqual(self.waiting.rows[1][8], 2)


class TestMoveAndClear(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.waiting.rows.extend([
            order_row(NOW_TEXT, 'Maadi', 'amr', 'P1', 'Juice', 10, 30, 'Drinks', 3, 'AA1'),
            order_row(NOW_TEXT, 'Zamalek', 'rana', 'P2', 'Chips', 5, 10, 'Snacks', 2, 'AA2'),
            order_row(NOW_TEXT, 'Maadi', 'amr', 'P3', 'Water', 3, 6, 'Drinks', 2, 'AA1'),
            order_row(LAST_MONTH_TEXT, 'Maadi', 'amr', 'P1', 'Juice', 10, 10, 'Drinks', 1, 'AA9'),
        ])

    def test_approve_moves_rows_verbatim_and_clears_source(self):
        original = [list(self.waiting.rows[1]), list(self.waiting.rows[3])]
        self.assertEqual(self.ledger.approve_order(DATA_ID, 'AA1'), 2)
        self.assertEqual(self.final.rows[1:], original)
        self.assertEqual(self.waiting.rows[1], BLANK)
        self.assertEqual(self.waiting.rows[3], BLANK)
        # Unrelated line keeps its position
        self.assertEqual(self.waiting.rows[2][10], 'AA2')

    def test_second_approve_finds_nothing(self):
        self.ledger.approve_order(DATA_ID, 'AA1')
        with self.assertRaises(NoMatchingRows) as ctx:
            self.ledger.approve_order(DATA_ID, 'AA1')
        self.assertEqual(ctx.exception.status_code, 400)

    def test_cancel_moves_to_cancelled(self):
        self.ledger.cancel_order(DATA_ID, 'AA2')
        self.assertEqual(self.cancelled.rows[1][10], 'AA2')
        self.assertEqual(self.waiting.rows[2], BLANK)
        self.assertEqual(len(self.final.rows), 1)

    def test_previous_month_serial_is_invisible(self):
        with self.assertRaises(NoMatchingRows):
            self.ledger.approve_order(DATA_ID, 'AA9')
        with self.assertRaises(NoMatchingRows):
            self.ledger.cancel_order(DATA_ID, 'AA9')
        self.assertEqual(self.waiting.rows[4][10], 'AA9')

    def test_approve_branch_moves_every_serial(self):
        self.assertEqual(self.ledger.approve_branch(DATA_ID, 'Maadi'), 2)
        self.assertEqual([r[10] for r in self.final.rows[1:]], ['AA1', 'AA1'])
        with self.assertRaises(NoMatchingRows):
            self.ledger.approve_branch(DATA_ID, 'Maadi')

    def test_approve_then_previous_orders(self):
        self.ledger.approve_order(DATA_ID, 'AA1')
        rows = self.ledger.rows_for_branch(DATA_ID, LogicalSheet.APPROVED, 'Maadi')
        latest = self.ledger.latest_by_code(rows)
        self.assertEqual(latest['P1'].line.quantity, 3)

    def test_approve_cancel_race_duplicates_lines(self):
        # Both transitions read Waiting before either clears it
        rows = self.ledger.rows_for_serial(DATA_ID, LogicalSheet.WAITING, 'AA2')
        self.ledger._move(DATA_ID, rows, LogicalSheet.WAITING, LogicalSheet.APPROVED)
        self.ledger._move(DATA_ID, rows, LogicalSheet.WAITING, LogicalSheet.CANCELLED)
        self.assertEqual(self.final.rows[1][10], 'AA2')
        self.assertEqual(self.cancelled.rows[1][10], 'AA2')

    def test_append_lands_below_existing_target_rows(self):
        self.final.rows.append(order_row(NOW_TEXT, 'Giza', 'omar', 'P1', 'Juice', 10, 10, 'Drinks', 1, 'AA0'))
        self.ledger.approve_order(DATA_ID, 'AA2')
        self.assertEqual(self.final.rows[1][10], 'AA0')
        self.assertEqual(self.final.rows[2][10], 'AA2')


class TestEdits(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.waiting.rows.extend([
            order_row(NOW_TEXT, 'Maadi', 'amr', 'P1', 'Juice', 10, 30, 'Drinks', 3, 'AA1'),
            order_row(NOW_TEXT, 'Maadi', 'amr', 'P2', 'Chips', 5.5, 11, 'Snacks', 2, 'AA1'),
        ])

    def test_edit_writes_only_quantity_and_subtotal(self):
        self.ledger.update_waiting_order(DATA_ID, 'AA1', [{'productCode': 'P1', 'quantity': 5}])
        self.assertEqual(self.waiting.rows[1], [NOW_TEXT, 'Maadi', 'amr', 'P1', 'Juice', 10, 50, 'Drinks', 5, '', 'AA1'])
        batch = [c for c in self.data.calls if c[0] == 'batch'][-1][1]
        self.assertEqual(batch, ["'Waiting for Approval'!I2", "'Waiting for Approval'!G2"])

    def test_edit_floors_quantity(self):
        self.ledger.update_waiting_order(DATA_ID, 'AA1', [{'productCode': 'P2', 'quantity': '-3'}])
        self.assertEqual(self.waiting.rows[2][8], 0)
        self.assertEqual(self.waiting.rows[2][6], 0)

    def test_edit_fractional_price(self):
        self.ledger.update_waiting_order(DATA_ID, 'AA1', [{'productCode': 'P2', 'quantity': 3}])
        self.assertEqual(self.waiting.rows[2][6], 16.5)

    def test_edit_unknown_codes(self):
        with self.assertRaises(NoMatchingRows):
            self.ledger.update_waiting_order(DATA_ID, 'AA1', [{'productCode': 'P9', 'quantity': 1}])
        with self.assertRaises(NoMatchingRows):
            self.ledger.update_waiting_order(DATA_ID, 'AA7', [{'productCode': 'P1', 'quantity': 1}])


class TestReturns(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.final.rows.extend([
            order_row(NOW_TEXT, 'Maadi', 'amr', 'P1', 'Juice', 10, 30, 'Drinks', 3, 'AA1'),
            order_row(NOW_TEXT, 'Maadi', 'amr', 'P1', 'Juice', 10, 20, 'Drinks', 2, 'AA3'),
            order_row(NOW_TEXT, 'Giza', 'omar', 'P1', 'Juice', 10, 10, 'Drinks', 1, 'AA4'),
            order_row(LAST_MONTH_TEXT, 'Maadi', 'amr', 'P2', 'Chips', 5, 5, 'Snacks', 1, 'AA0'),
        ])

    def test_last_matching_row_wins(self):
        self.ledger.update_previous_orders(DATA_ID, 'Maadi', [{'productCode': 'P1', 'quantity': 1}])
        self.assertEqual(self.final.rows[1][8], 3)
        self.assertEqual(self.final.rows[2][8], 1)
        self.assertEqual(self.final.rows[2][6], 10)

    def test_row_index_addresses_exact_line(self):
        self.ledger.update_previous_orders(DATA_ID, 'Maadi', [{'productCode': 'P1', 'quantity': 0, 'rowIndex': 1}])
        self.assertEqual(self.final.rows[1][8], 0)
        self.assertEqual(self.final.rows[2][8], 2)

    def test_row_index_of_other_branch_falls_back_to_code(self):
        self.ledger.update_previous_orders(DATA_ID, 'Maadi', [{'productCode': 'P1', 'quantity': 7, 'rowIndex': 3}])
        self.assertEqual(self.final.rows[3][8], 1)
        self.assertEqual(self.final.rows[2][8], 7)

    def test_previous_month_lines_are_not_returnable(self):
        with self.assertRaises(NoMatchingRows):
            self.ledger.update_previous_orders(DATA_ID, 'Maadi', [{'productCode': 'P2', 'quantity': 0}])


class TestScan(LedgerTestCase):

    def test_header_and_undated_rows_skipped(self):
        self.waiting.rows.extend([
            order_row('', 'Maadi', 'amr', 'P1', 'Juice', 10, 30, 'Drinks', 3, 'AA1'),
            [],
            order_row(46096, 'Maadi', 'amr', 'P1', 'Juice', 10, 30, 'Drinks', 3, 'AA2'),
        ])
        rows = self.ledger.scan(DATA_ID, LogicalSheet.WAITING)
        self.assertEqual([r.line.serial for r in rows], ['AA2'])
        self.assertEqual(rows[0].index, 3)
        self.assertEqual(rows[0].sheet_row, 4)

    def test_missing_tab_tolerated_only_on_request(self):
        del self.data.sheets['Cancelled Orders']
        self.assertEqual(self.ledger.scan(DATA_ID, LogicalSheet.CANCELLED, tolerate_missing=True), [])
        with self.assertRaises(StoreUnavailable):
            self.ledger.scan(DATA_ID, LogicalSheet.CANCELLED)

    def test_catalog(self):
        catalog = self.ledger.catalog_index(DATA_ID)
        self.assertEqual(list(catalog), ['P1', 'P2', 'P3'])
        self.assertEqual(catalog['P2'].to_dict(), {
            'code': 'P2', 'name': 'Chips', 'category': 'Snacks', 'price': 5.5, 'imageUrl': 'https://img/p2.png',
        })
        self.assertEqual(catalog['P3'].image_url, '')


class TestOrderId(unittest.TestCase):

    def test_parse_order_id(self):
        self.assertEqual(parse_order_id('AA13__waiting'), ('AA13', 'waiting'))
        self.assertEqual(parse_order_id(' AA13 '), ('AA13', 'waiting'))
        self.assertEqual(parse_order_id('AA13__Approved'), ('AA13', 'approved'))
        self.assertEqual(parse_order_id(None), ('', 'waiting'))

    def test_order_id_parses_back(self):
        order = Order(serial='AA13', status=LogicalSheet.CANCELLED)
        self.assertEqual(order.order_id, 'AA13__cancelled')
        self.assertEqual(parse_order_id(order.order_id), ('AA13', 'cancelled'))

    def test_require_waiting(self):
        require_waiting('waiting', 'x')
        with self.assertRaises(ValidationFailure):
            require_waiting('approved', 'x')


if __name__ == '__main__':
    unittest.main()
