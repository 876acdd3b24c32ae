from decimal import Decimal

from openpyxl import Workbook

from sheet_interpreter.parser import parse_formula
from sheet_interpreter.reader import cell_source, read_worksheet, split_table_text
from sheet_interpreter.utils import (
    column_as_int,
    column_as_str,
    coordinate_label,
    format_formula,
    pretty_print_ast,
)


class TestSplitTableText:
    def test_trailing_delimiter_and_blank_lines(self):
        assert split_table_text("1|2|\n\n 3 | 4 \n") == [["1", "2"], ["3", "4"]]

    def test_custom_delimiter(self):
        assert split_table_text("1;=a1+1;\n", delimiter=";") == [["1", "=a1+1"]]

    def test_empty_cells_are_kept(self):
        assert split_table_text("1||3|\n") == [["1", "", "3"]]


class TestCellSource:
    def test_values(self):
        assert cell_source(None) == ""
        assert cell_source(1) == "1"
        assert cell_source(2.5) == "2.5"
        assert cell_source(Decimal("1.10")) == "1.10"
        assert cell_source(True) == "TRUE"
        assert cell_source("=A1") == "=A1"

    def test_read_worksheet(self):
        wb = Workbook()
        ws = wb.active
        ws["A1"] = 1
        ws["B2"] = "=A1*2"
        assert read_worksheet(ws) == [["1", ""], ["", "=A1*2"]]


class TestCoordinates:
    def test_coordinate_label(self):
        assert coordinate_label(0, 0) == "A1"
        assert coordinate_label(1, 2) == "B3"
        assert coordinate_label(26, 11) == "AA12"

    def test_column_conversions(self):
        assert column_as_int("aa") == 27
        assert column_as_int(3) == 3
        assert column_as_str(27) == "AA"
        assert column_as_str("C") == "C"

    def test_columns_wider_than_zzz(self):
        assert column_as_int("zzz") == 18278
        assert column_as_int("aaaa") == 18279
        assert column_as_str(18278) == "ZZZ"
        assert column_as_str(18279) == "AAAA"
        assert column_as_str(column_as_int("bazq")) == "BAZQ"
        assert coordinate_label(18278, 0) == "AAAA1"


class TestFormatting:
    def test_format_formula(self):
        ast = parse_formula("sum(a1:b2, -c3) * (1 + 2.5)")
        assert format_formula(ast) == "SUM(A1:B2, -C3) * (1 + 2.5)"

    def test_formatted_formula_parses_to_the_same_ast(self):
        ast = parse_formula("=a1 - b2 / (3 - sum(c1:c4))")
        assert parse_formula(format_formula(ast)) == ast

    def test_pretty_print_ast(self, capsys):
        pretty_print_ast(parse_formula("sum(a1, 1 + 2)"))
        assert capsys.readouterr().out.splitlines() == [
            "Call: SUM",
            "  Argument 1:",
            "    Cell Ref: A1",
            "  Argument 2:",
            "    Binary Operation: +",
            "      Left:",
            "        Number: 1",
            "      Right:",
            "        Number: 2",
        ]
