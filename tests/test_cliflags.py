from datetime import datetime

import pytest

from photoferry.cliflags import (
    TYPE_IMAGE,
    TYPE_SIDECAR,
    TYPE_VIDEO,
    DateMethod,
    DateRange,
    ExtensionList,
    IncludeType,
    InclusionFlags,
    describe_on_server_errors,
    parse_date_method,
    parse_include_type,
    parse_on_server_errors,
)

RANGE_CASES = [
    (
        "2017-08-07,2017-09-07",
        [
            ("2017-08-31 17:55:20", True),
            ("2017-08-07 00:00:00", True),
            ("2017-09-07 23:59:59", True),
            ("2017-01-31 07:50:00", False),
            ("2017-09-08 00:00:00", False),
            ("2017-12-01 00:00:00", False),
        ],
    ),
    (
        "2017-08-31",
        [
            ("2017-08-31 17:55:20", True),
            ("2017-08-31 00:00:00", True),
            ("2017-08-31 23:59:59", True),
            ("2017-01-31 07:50:00", False),
            ("2017-09-01 00:00:00", False),
            ("2017-12-01 00:00:00", False),
        ],
    ),
    (
        "2017-08",
        [
            ("2017-08-31 17:55:20", True),
            ("2017-08-01 00:00:00", True),
            ("2017-08-31 23:59:59", True),
            ("2017-01-31 07:50:00", False),
            ("2017-09-01 00:00:00", False),
            ("2017-12-01 00:00:00", False),
        ],
    ),
    (
        "2017",
        [
            ("2017-08-31 17:55:20", True),
            ("2017-01-01 00:00:00", True),
            ("2017-12-31 23:59:59", True),
            ("2016-12-31 23:59:00", False),
            ("2018-01-01 00:00:00", False),
            ("2018-12-01 00:00:00", False),
        ],
    ),
]


@pytest.mark.parametrize("name,checks", RANGE_CASES)
def test_date_range_in_range(name, checks):
    dr = DateRange()
    dr.set_tz(None)
    dr.set(name)
    assert str(dr) == name
    for text, want in checks:
        d = datetime.strptime(text, "%Y-%m-%d %H:%M:%S")
        assert dr.in_range(d) is want, text


def test_date_range_unset():
    dr = DateRange()
    assert str(dr) == "unset"
    assert not dr.is_set
    assert dr.in_range(datetime(1990, 1, 1)) is True


@pytest.mark.parametrize("value", ["20", "2022-13", "2022-02-30", "abcd", "2022-1-01"])
def test_date_range_invalid(value):
    dr = DateRange()
    with pytest.raises(ValueError):
        dr.set(value)
    assert not dr.is_set


def test_date_range_constructor_sets():
    dr = DateRange("2017-08")
    assert dr.is_set
    assert dr.after == datetime(2017, 8, 1)
    assert dr.before == datetime(2017, 9, 1)


@pytest.mark.parametrize(
    "ext_list,ext,want",
    [
        ([], ".jpg", True),
        ([".jpg"], ".JPG", True),
        ([".jpg"], ".heic", False),
        ([".jpg", ".mp4", ".mov"], ".MOV", True),
        ([".jpg", ".mp4", ".mov"], ".HEIC", False),
    ],
)
def test_extension_list_include(ext_list, ext, want):
    assert ExtensionList(ext_list).include(ext) is want


@pytest.mark.parametrize(
    "ext_list,ext,want",
    [
        ([], ".jpg", False),
        ([".jpg"], ".JPG", True),
        ([".jpg"], ".heic", False),
        ([".jpg", ".mp4", ".mov"], ".MOV", True),
        ([".jpg", ".mp4", ".mov"], ".HEIC", False),
    ],
)
def test_extension_list_exclude(ext_list, ext, want):
    assert ExtensionList(ext_list).exclude(ext) is want


MEDIA = {
    TYPE_IMAGE: [".jpg", ".heic"],
    TYPE_VIDEO: [".mp4", ".mov"],
    TYPE_SIDECAR: [".xmp"],
}


@pytest.mark.parametrize(
    "include_type,expected",
    [
        ("image", {".jpg", ".heic", ".xmp"}),
        ("video", {".mp4", ".mov", ".xmp"}),
    ],
)
def test_set_include_type_extensions(include_type, expected):
    flags = InclusionFlags(included_type=IncludeType(include_type.upper()))
    flags.set_include_type_extensions(MEDIA)
    assert set(flags.included_extensions) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("video", IncludeType.VIDEO),
        ("VIDEO", IncludeType.VIDEO),
        ("viDEo", IncludeType.VIDEO),
        ("  VIDEO     ", IncludeType.VIDEO),
        ("image", IncludeType.IMAGE),
        ("IMAGE", IncludeType.IMAGE),
        ("ImaGe", IncludeType.IMAGE),
        ("  IMAGE     ", IncludeType.IMAGE),
    ],
)
def test_parse_include_type(text, expected):
    assert parse_include_type(text) is expected


@pytest.mark.parametrize("text", ["", "imagevideo"])
def test_parse_include_type_invalid(text):
    with pytest.raises(ValueError):
        parse_include_type(text)


def test_extension_list_add_and_validate():
    sl = ExtensionList()
    sl.add(" JPG, .Heic ,,")
    assert sl == ["JPG", ".Heic"]
    assert sl.validate() == [".jpg", ".heic"]
    assert str(sl) == "JPG, .Heic"


def test_inclusion_flags_validate():
    flags = InclusionFlags(
        excluded_extensions=ExtensionList(["GIF"]),
        included_extensions=ExtensionList([" .JPG "]),
    )
    flags.validate()
    assert flags.excluded_extensions == [".gif"]
    assert flags.included_extensions == [".jpg"]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("", DateMethod.NONE),
        ("filename", DateMethod.NAME),
        (" exif ", DateMethod.EXIF),
        ("FILENAME-EXIF", DateMethod.NAME_THEN_EXIF),
        ("exif-filename", DateMethod.EXIF_THEN_NAME),
    ],
)
def test_parse_date_method(text, expected):
    assert parse_date_method(text) is expected


def test_parse_date_method_invalid():
    with pytest.raises(ValueError, match="invalid DateMethod"):
        parse_date_method("camera")


@pytest.mark.parametrize(
    "text,expected", [("stop", 0), ("STOP", 0), ("continue", -1), ("5", 5)]
)
def test_parse_on_server_errors(text, expected):
    assert parse_on_server_errors(text) == expected


def test_parse_on_server_errors_invalid():
    with pytest.raises(ValueError, match="invalid value for on-server-errors"):
        parse_on_server_errors("sometimes")


@pytest.mark.parametrize(
    "value,expected",
    [(0, "stop"), (-1, "continue"), (3, "stop after 3 errors"), (-5, "unknown")],
)
def test_describe_on_server_errors(value, expected):
    assert describe_on_server_errors(value) == expected