import io
from datetime import datetime, timezone

import pytest

from photoferry.assets import Metadata, Tag
from photoferry.xmp import (
    bool_to_string,
    gps_float_to_string,
    gps_string_to_float,
    int_to_string,
    read_xmp,
    string_to_bool,
    string_to_byte,
    string_to_int,
    time_string_to_time,
    time_to_string,
)

DIGIKAM_XMP = """<?xpacket begin="" id="W5M0MpCehiHzreSzNTczkc9d"?>
<x:xmpmeta xmlns:x="adobe:ns:meta/">
 <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
  <rdf:Description rdf:about=""
    xmlns:exif="http://ns.adobe.com/exif/1.0/"
    xmlns:xmp="http://ns.adobe.com/xap/1.0/">
   <exif:DateTimeOriginal>2018-08-11T17:38:25Z</exif:DateTimeOriginal>
   <exif:ImageDescription>
    <rdf:Alt>
     <rdf:li xml:lang="x-default">Alors!</rdf:li>
    </rdf:Alt>
   </exif:ImageDescription>
   <xmp:Rating>4</xmp:Rating>
  </rdf:Description>
  <rdf:Description rdf:about=""
    xmlns:digiKam="http://www.digikam.org/ns/1.0/">
   <digiKam:TagsList>
    <rdf:Seq>
     <rdf:li>activities/outdoors</rdf:li>
    </rdf:Seq>
   </digiKam:TagsList>
  </rdf:Description>
 </rdf:RDF>
</x:xmpmeta>
<?xpacket end="w"?>
"""

CR2_XMP = """<x:xmpmeta xmlns:x="adobe:ns:meta/">
 <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
  <rdf:Description rdf:about="" xmlns:exif="http://ns.adobe.com/exif/1.0/">
   <exif:GPSLatitude>48,24.50256N</exif:GPSLatitude>
   <exif:GPSLongitude>3,5.4354W</exif:GPSLongitude>
  </rdf:Description>
 </rdf:RDF>
</x:xmpmeta>
"""


def test_read_digikam_sidecar():
    md = Metadata()
    read_xmp(io.BytesIO(DIGIKAM_XMP.encode()), md)
    assert md.description == "Alors!"
    assert md.date_taken == datetime(2018, 8, 11, 17, 38, 25, tzinfo=timezone.utc)
    assert md.rating == 4
    assert md.tags == [Tag(name="outdoors", value="activities/outdoors")]
    assert md.latitude == pytest.approx(0.0, abs=1e-6)
    assert md.longitude == pytest.approx(0.0, abs=1e-6)


def test_read_cr2_sidecar():
    md = Metadata()
    read_xmp(io.StringIO(CR2_XMP), md)
    assert md.latitude == pytest.approx(48.408376, abs=1e-6)
    assert md.longitude == pytest.approx(-3.090590, abs=1e-6)
    assert md.description == ""
    assert md.date_taken is None
    assert md.rating == 0
    assert md.tags == []


def test_read_invalid_xml():
    with pytest.raises(ValueError):
        read_xmp(io.StringIO("<x:xmpmeta><unclosed>"), Metadata())


def test_bool_strings():
    assert bool_to_string(True) == "True"
    assert bool_to_string(False) == "False"
    assert string_to_bool("TRUE") is True
    assert string_to_bool("no") is False


def test_gps_float_to_string():
    assert gps_float_to_string(48.408376, True) == "48,24.50256N"
    assert gps_float_to_string(-3.09059, False) == "3,05.43540W"


@pytest.mark.parametrize(
    "value,is_latitude",
    [(48.408376, True), (-3.09059, False), (-33.5, True), (151.25, False)],
)
def test_gps_round_trip(value, is_latitude):
    assert gps_string_to_float(gps_float_to_string(value, is_latitude)) == pytest.approx(
        value, abs=1e-6
    )


def test_gps_string_invalid():
    with pytest.raises(ValueError):
        gps_string_to_float("")
    with pytest.raises(ValueError):
        gps_string_to_float("abcN")


def test_int_strings():
    assert int_to_string(42) == "42"
    assert string_to_int("42") == 42
    assert string_to_int("x") == 0
    assert string_to_byte("4") == 4
    assert string_to_byte("256") == 0
    assert string_to_byte("-1") == 0


def test_time_round_trip():
    t = time_string_to_time("2018-08-11T17:38:25Z", timezone.utc)
    assert t == datetime(2018, 8, 11, 17, 38, 25, tzinfo=timezone.utc)
    assert time_to_string(t) == "2018-08-11T17:38:25Z"


def test_time_invalid():
    with pytest.raises(ValueError):
        time_string_to_time("2018-08-11 17:38:25", timezone.utc)