from campaign_formatter import Table, is_table_line, parse_table_lines


def test_parses_header_and_rows():
    table = parse_table_lines([
        "| Week | Task |",
        "|---|---|",
        "| 1 | Plan |",
        "| 2 | Execute |",
    ])
    assert table == Table(["Week", "Task"], [["1", "Plan"], ["2", "Execute"]])


def test_row_count_and_width_match_input():
    lines = ["| a | b | c |", "|---|---|---|"] + [f"| {i} | x | y |" for i in range(5)]
    table = parse_table_lines(lines)
    assert len(table.rows) == 5
    assert all(len(row) == len(table.headers) for row in table.rows)


def test_rows_with_wrong_width_are_dropped():
    lines = [
        "| Name | Role |",
        "| --- | --- |",
        "| Ana | Lead |",
        "| Ben |",
        "| Cy | Ops | extra |",
    ]
    table = parse_table_lines(lines)
    assert table.rows == [["Ana", "Lead"]]

    # Re-parsing only the surviving rows gives the same table.
    again = parse_table_lines(lines[:3])
    assert again == table


def test_fewer_than_three_lines_is_not_a_table():
    assert parse_table_lines([]) is None
    assert parse_table_lines(["| a |"]) is None
    assert parse_table_lines(["| a | b |", "|---|---|"]) is None


def test_separator_row_is_skipped_without_validation():
    table = parse_table_lines(["| a | b |", "| not | dashes |", "| 1 | 2 |"])
    assert table.headers == ["a", "b"]
    assert table.rows == [["1", "2"]]


def test_separator_like_data_rows_are_discarded():
    table = parse_table_lines(["| a | b |", "|---|---|", "| 1 | 2 |", "|:--|--:|"])
    assert table.rows == [["1", "2"]]


def test_no_surviving_rows_is_not_a_table():
    assert parse_table_lines(["| a | b |", "|---|---|", "| only one |"]) is None


def test_blank_header_is_not_a_table():
    assert parse_table_lines(["|  |  |", "|---|---|", "| 1 | 2 |"]) is None


def test_cells_are_trimmed_and_empty_cells_kept():
    table = parse_table_lines(["|  x  | y |", "|-|-|", "|   | z  |"])
    assert table.headers == ["x", "y"]
    assert table.rows == [["", "z"]]


def test_is_table_line():
    assert is_table_line("| a | b |")
    assert is_table_line("   |a|   ")
    assert not is_table_line("| a | b")
    assert not is_table_line("a | b |")
    assert not is_table_line("|")
    assert not is_table_line("")
