import os

import pytest

import sheets_exporter


def test_scan_files_finds_csv_at_any_depth(tmp_path):
    (tmp_path / 'a.csv').write_text('x,y\n')
    (tmp_path / 'notes.txt').write_text('ignored')
    nested = tmp_path / 'reports' / '2024'
    nested.mkdir(parents=True)
    (nested / 'b.csv').write_text('1,2\n')
    (nested / 'b.csv.bak').write_text('1,2\n')
    (nested / 'upper.CSV').write_text('1,2\n')
    (tmp_path / 'dir.csv').mkdir()

    assert sheets_exporter.scan_files(str(tmp_path)) == ['a.csv', 'b.csv']


def test_scan_files_returns_base_names_only(tmp_path):
    nested = tmp_path / 'deep' / 'er'
    nested.mkdir(parents=True)
    (nested / 'c.csv').write_text('')

    assert sheets_exporter.scan_files(str(tmp_path)) == ['c.csv']


def test_scan_files_missing_root_is_empty(tmp_path):
    assert sheets_exporter.scan_files(str(tmp_path / 'does-not-exist')) == []


def test_scan_files_honours_other_extensions(tmp_path):
    (tmp_path / 'a.csv').write_text('')
    (tmp_path / 'b.tsv').write_text('')

    assert sheets_exporter.scan_files(str(tmp_path), '.tsv') == ['b.tsv']


def test_build_rows_from_csv_simple(tmp_path):
    source = tmp_path / 'a.csv'
    source.write_text('x,y\n1,2\n', encoding='utf-8')

    assert sheets_exporter.build_rows_from_csv(str(source)) == [['x', 'y'], ['1', '2']]


def test_build_rows_from_csv_keeps_literal_field_content(tmp_path):
    source = tmp_path / 'quoted.csv'
    source.write_text(
        'name,comment,amount\n'
        '"Smith, J."," padded ",007\n'
        '"multi\nline","say ""hi""",\n'
        'only-one\n'
        'a,b,c,d\n',
        encoding='utf-8',
    )

    rows = sheets_exporter.build_rows_from_csv(str(source))

    assert rows == [
        ['name', 'comment', 'amount'],
        ['Smith, J.', ' padded ', '007'],
        ['multi\nline', 'say "hi"', ''],
        ['only-one'],
        ['a', 'b', 'c', 'd'],
    ]
    assert [len(row) for row in rows] == [3, 3, 3, 1, 4]


def test_build_rows_from_csv_skips_blank_lines(tmp_path):
    source = tmp_path / 'gaps.csv'
    source.write_text('a,b\n\n1,2\n', encoding='utf-8')

    assert sheets_exporter.build_rows_from_csv(str(source)) == [['a', 'b'], ['1', '2']]


def test_build_rows_from_empty_file(tmp_path):
    source = tmp_path / 'empty.csv'
    source.write_text('', encoding='utf-8')

    assert sheets_exporter.build_rows_from_csv(str(source)) == []


def test_build_rows_from_missing_file_raises(tmp_path):
    with pytest.raises(sheets_exporter.ConversionError, match='missing.csv'):
        sheets_exporter.build_rows_from_csv(str(tmp_path / 'missing.csv'))


def test_build_rows_from_undecodable_file_raises(tmp_path):
    source = tmp_path / 'latin1.csv'
    source.write_bytes(b'caf\xe9,1\n')

    with pytest.raises(sheets_exporter.ConversionError):
        sheets_exporter.build_rows_from_csv(str(source))


def test_to_row_data_wraps_every_cell_as_string_value():
    row_data = sheets_exporter.to_row_data([['x', 'y'], ['1']])

    assert row_data == [
        {'values': [
            {'userEnteredValue': {'stringValue': 'x'}},
            {'userEnteredValue': {'stringValue': 'y'}},
        ]},
        {'values': [{'userEnteredValue': {'stringValue': '1'}}]},
    ]


def test_build_sheet_spec_uses_single_grid():
    spec = sheets_exporter.build_sheet_spec('a.csv', [['x', 'y'], ['1', '2']])

    assert spec['properties'] == {'title': 'a.csv'}
    assert len(spec['data']) == 1
    assert 'startRow' not in spec['data'][0]
    assert len(spec['data'][0]['rowData']) == 2


def test_scan_files_visits_subdirectories_in_sorted_position(tmp_path):
    (tmp_path / 'b').mkdir()
    (tmp_path / 'b' / 'x.csv').write_text('')
    (tmp_path / 'c.csv').write_text('')
    (tmp_path / 'a.csv').write_text('')
    (tmp_path / 'd').mkdir()
    (tmp_path / 'd' / 'e').mkdir()
    (tmp_path / 'd' / 'e' / 'z.csv').write_text('')
    (tmp_path / 'd' / 'y.csv').write_text('')

    assert sheets_exporter.scan_files(str(tmp_path)) == ['a.csv', 'x.csv', 'c.csv', 'z.csv', 'y.csv']


@pytest.mark.skipif(not hasattr(os, 'mkfifo'), reason='named pipes not supported')
def test_scan_files_skips_non_regular_files(tmp_path):
    os.mkfifo(tmp_path / 'pipe.csv')
    (tmp_path / 'real.csv').write_text('')

    assert sheets_exporter.scan_files(str(tmp_path)) == ['real.csv']
