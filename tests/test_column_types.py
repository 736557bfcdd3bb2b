import unittest
from datetime import datetime

from models.workbook_models import ColumnType
from services.cell_value_service import is_date_like, parse_value, to_label, to_number
from services.stats_service import calculate_column_stats
from services.type_detection_service import detect_column_type


class TestCellValues(unittest.TestCase):
    def test_to_number_strips_currency_and_separators(self):
        self.assertEqual(to_number("$1,234.50"), 1234.5)
        self.assertEqual(to_number(" 15% "), 15.0)
        self.assertEqual(to_number(7), 7.0)

    def test_to_number_rejects_non_numbers(self):
        self.assertIsNone(to_number(True))
        self.assertIsNone(to_number("abc"))
        self.assertIsNone(to_number(""))
        self.assertIsNone(to_number(float("inf")))
        self.assertIsNone(to_number("nan"))
        self.assertIsNone(to_number("2024-01-05"))
        self.assertIsNone(to_number("1_000"))
        self.assertIsNone(to_number(None))

    def test_date_like(self):
        self.assertTrue(is_date_like("2024-01-05"))
        self.assertTrue(is_date_like("5/1/24"))
        self.assertTrue(is_date_like("January 2024"))
        self.assertTrue(is_date_like(datetime(2024, 1, 5)))
        self.assertFalse(is_date_like("Q1"))

    def test_labels_and_sample_values(self):
        self.assertEqual(to_label(3.0), "3")
        self.assertEqual(to_label(2.5), "2.5")
        self.assertEqual(to_label(datetime(2024, 1, 5)), "2024-01-05")
        self.assertEqual(to_label("Q1"), "Q1")
        self.assertEqual(parse_value("42"), 42)
        self.assertIsNone(parse_value("   "))
        self.assertEqual(parse_value("hello"), "hello")


class TestDetectColumnType(unittest.TestCase):
    def test_small_set_of_integers_is_categorical(self):
        values = [1, 2, 3, 4, 5] * 4
        result = detect_column_type(values, values)
        self.assertEqual(result.type, ColumnType.CATEGORICAL)
        self.assertEqual(result.unique_count, 5)

    def test_twenty_five_distinct_integers_is_numeric(self):
        values = list(range(1, 26))
        result = detect_column_type(values, values)
        self.assertEqual(result.type, ColumnType.NUMERIC)
        self.assertEqual(result.unique_count, 25)

    def test_categorical_rule_looks_at_full_column(self):
        sample = [1, 2, 3]
        all_values = list(range(1, 30))
        self.assertEqual(detect_column_type(sample, all_values).type, ColumnType.NUMERIC)

    def test_fractional_values_stay_numeric(self):
        values = ["$1,200", "$2,500.50", "15%"]
        result = detect_column_type(values, values)
        self.assertEqual(result.type, ColumnType.NUMERIC)
        self.assertEqual(result.unique_count, 3)

    def test_threshold_ignores_blanks(self):
        values = [1.5, 2.5, 3.5, 4.5, "n/a", None, None]
        self.assertEqual(detect_column_type(values, values).type, ColumnType.NUMERIC)

    def test_boolean_date_text(self):
        self.assertEqual(detect_column_type(["true", "FALSE", True], []).type, ColumnType.BOOLEAN)
        dates = ["2024-01-01", "2024-02-01", "03/01/2024", datetime(2024, 4, 1)]
        self.assertEqual(detect_column_type(dates, dates).type, ColumnType.DATE)
        self.assertEqual(detect_column_type(["alpha", "beta", "gamma"], []).type, ColumnType.TEXT)

    def test_mixed_or_empty_falls_back_to_text(self):
        self.assertEqual(detect_column_type(["a", "b", 1, 2, 3], []).type, ColumnType.TEXT)
        self.assertEqual(detect_column_type([None, "", "  "], []).type, ColumnType.TEXT)


class TestColumnStats(unittest.TestCase):
    def test_stats_over_numbers(self):
        stats = calculate_column_stats([10, "20", None, "x", 33.333])
        self.assertEqual(stats.min, 10)
        self.assertEqual(stats.max, 33.33)
        self.assertEqual(stats.avg, 21.11)
        self.assertEqual(stats.unique_count, 3)

    def test_no_numbers(self):
        self.assertIsNone(calculate_column_stats(["a", None]))


if __name__ == "__main__":
    unittest.main()
