import unittest

from models.workbook_models import ColumnType
from services.codebook_service import extract_codebook, is_description_sheet
from services.sheet_summary_service import build_headers, find_codebook, summarize_sheet


class TestCodebook(unittest.TestCase):
    def test_column_letter_layout(self):
        grid = [["Column A", "Age", "Age in years"], ["Column B", "Sex", "M/F"]]
        self.assertEqual(extract_codebook(grid), {"Age": "Age in years", "Sex": "M/F"})

    def test_name_description_layout_with_header(self):
        grid = [
            ["Column", "Variable", "Description"],
            ["Credit Hours", "Number of credit hours this term"],
            ["GPA", "Grade point average", "ignored"],
        ]
        self.assertEqual(
            extract_codebook(grid),
            {"Credit Hours": "Number of credit hours this term", "GPA": "Grade point average"},
        )

    def test_letter_without_description_uses_name(self):
        grid = [["Column C", "Major"], ["Column D", "Year", None]]
        self.assertEqual(extract_codebook(grid), {"Major": "Major", "Year": "Year"})

    def test_numeric_cells_read_like_the_sheet(self):
        grid = [["Column A", 2024.0, "Enrollment year"], ["Column B", "Sex", 1.0]]
        self.assertEqual(extract_codebook(grid), {"2024": "Enrollment year", "Sex": "1"})

    def test_nothing_found(self):
        self.assertIsNone(extract_codebook([["only one row"]]))
        self.assertIsNone(extract_codebook([["a"], ["b"]]))

    def test_description_sheet_names(self):
        for name in ("Description", "CODEBOOK", "legend", "Variables"):
            self.assertTrue(is_description_sheet(name))
        self.assertFalse(is_description_sheet("Data Description"))
        self.assertFalse(is_description_sheet("Sheet1"))

    def test_find_codebook_prefers_later_sheet(self):
        grids = {
            "Codes": [["Column A", "Age", "Age in years"], ["Column B", "Sex", "M/F"]],
            "Data": [["Age", "Sex"], [30, "M"]],
            "Info": [["Score", "Exam score"], ["Grade", "Letter grade"]],
        }
        self.assertEqual(find_codebook(grids), {"Score": "Exam score", "Grade": "Letter grade"})


class TestSummarizeSheet(unittest.TestCase):
    def test_headers_fill_blanks(self):
        self.assertEqual(build_headers(["Name", None, " Score "], 4), ["Name", "Column 2", "Score", "Column 4"])
        self.assertEqual(build_headers([2024.0, float("nan")], 2), ["2024", "Column 2"])

    def test_summary(self):
        grid = [
            ["Name", "Height", "Group", None],
            ["Ann", 1.62, 1, None],
            ["Bob", 1.80, 2, None],
            [None, None, None, None],
            ["Cid", 1.75, 1, None],
        ]
        summary = summarize_sheet("People", grid)

        self.assertEqual(summary.name, "People")
        self.assertEqual(summary.row_count, 3)
        self.assertEqual(list(summary.columns), ["A", "B", "C"])
        self.assertEqual(summary.columns["A"].header, "Name")
        self.assertEqual(summary.columns["A"].type, ColumnType.TEXT)
        self.assertEqual(summary.columns["B"].type, ColumnType.NUMERIC)
        self.assertEqual(summary.columns["C"].type, ColumnType.CATEGORICAL)
        self.assertEqual(summary.columns["C"].unique_values, 2)

        self.assertEqual(list(summary.stats), ["Height"])
        self.assertEqual(summary.stats["Height"].min, 1.62)
        self.assertEqual(summary.stats["Height"].max, 1.8)

        self.assertEqual(len(summary.sample), 3)
        self.assertEqual(summary.sample[0], {"Name": "Ann", "Height": 1.62, "Group": 1})
        self.assertEqual(summary.sample[2], {"Name": None, "Height": None, "Group": None})

    def test_skips_small_or_empty_sheets(self):
        self.assertIsNone(summarize_sheet("Empty", []))
        self.assertIsNone(summarize_sheet("Header only", [["a", "b"]]))
        self.assertIsNone(summarize_sheet("No data", [["a", "b"], [None, ""]]))


if __name__ == "__main__":
    unittest.main()
