# photoferry

photoferry gathers pieces used when moving a photo and video library into a
self-hosted photo server. It models assets, albums and tags, reads capture dates
and GPS positions straight from image and video files, reads XMP sidecars,
reads and writes JSON sidecars, filters files by extension, type and date range,
keeps a journal of what happened to every file, and can run commands in a
server container through Docker, locally or over SSH.

It needs Python 3.10 or later. Its only third-party dependency is `paramiko`,
used for remote Docker hosts.

## Reading the metadata of a file

The package installs one command:

    photoferry-read IMG_1234.jpg

It reads the file's embedded metadata and writes it to standard error as a
single `INFO Metadata m=...` line. The capture date is shown in full; GPS
coordinates are shown only to the whole degree. When the file cannot be opened
or read, the error message is printed instead. Given anything other than exactly
one file name, it prints a usage line.

JPEG, HEIC/HEIF, DNG, CR2, CR3, ARW, RAF, NEF, MP4 and MOV files are understood;
any other extension is reported as unsupported. For MP4 and MOV files only the
creation date of the movie header is read.

The same reading is available from Python:

```python
from datetime import timezone

from photoferry.exif import metadata_from_direct_read

with open("PXL_20231006_063000139.jpg", "rb") as stream:
    md = metadata_from_direct_read(stream, "PXL_20231006_063000139.jpg", timezone.utc)

print(md.date_taken, md.latitude, md.longitude)
```

Dates stored without a time zone are taken in the zone given, or in the local
zone when it is `None`. Unreadable data raises `ValueError`.

## What is in the package

| Module | Purpose |
| --- | --- |
| `photoferry.assets` | `Asset`, `Album`, `Tag`, `Metadata`, `NameInfo`, `Kind`, `Group`, `GroupBy` and `RemovedAsset`; `unmarshal_metadata` and `metadata_from_dict` |
| `photoferry.collection_cache` | `CollectionCache` and `Collection`: keep the members of albums or tags and save new ones in batches |
| `photoferry.cliflags` | `DateRange`, `ExtensionList`, `IncludeType`, `DateMethod`, `InclusionFlags`, and `parse_on_server_errors` / `describe_on_server_errors` |
| `photoferry.configuration` | `Configuration`, `config_read`, `default_config_file`, `default_log_file`, `make_dir_for_file` |
| `photoferry.search` | `search_pattern` and `SliceReader`: find a byte pattern in a stream |
| `photoferry.quicktime` | `decode_mvhd_atom` and `MvhdAtom`: dates of QuickTime and MP4 movie headers |
| `photoferry.exif` | `metadata_from_direct_read` and `get_metadata` |
| `photoferry.reader` | the `photoferry-read` command (`main`, `run`) |
| `photoferry.xmp` | `read_xmp` and the XMP value conversions |
| `photoferry.jsonsidecar` | `write_sidecar` and `read_sidecar` |
| `photoferry.fileevent` | `Code` and `Recorder`: per-event counters, logging and the final report |
| `photoferry.fakefs` | `FakeFS`: a file system simulated from archive listings such as `unzip -l` output |
| `photoferry.docker` | `DockerConnect` and `new_docker_connection`: run commands in a container, copy files in and out |

## Filtering inputs

```python
from photoferry.cliflags import DateRange, ExtensionList, parse_date_method

included = ExtensionList()
included.add("JPG, heic")
included = included.validate()   # ['.jpg', '.heic']

included.include(".jpg")   # True
included.include(".mov")   # False

parse_date_method("exif-filename")   # DateMethod.EXIF_THEN_NAME

august = DateRange("2017-08")
str(august)   # '2017-08'
```

A `DateRange` accepts a year (`2022`), a month (`2022-01`), a day
(`2022-01-01`) or an inclusive range of days (`2022-01-01,2022-12-31`);
`in_range` tells whether a capture date falls inside it. An unset range accepts
every date. Invalid text raises `ValueError`.

`parse_on_server_errors` accepts `stop`, `continue` or a number of errors to
tolerate.

## Sidecars

```python
from photoferry.assets import Metadata
from photoferry.xmp import gps_float_to_string, read_xmp

md = Metadata()
with open("IMG_2477.CR2.xmp", "rb") as stream:
    read_xmp(stream, md)

gps_float_to_string(48.408376, True)   # '48,24.50256N'
```

`read_xmp` fills the capture date, description, rating, tags and GPS position.
`write_sidecar(md, stream, software)` writes a metadata object as indented JSON,
and `read_sidecar(stream)` reads it back.

## Keeping track of files

```python
from photoferry.fileevent import Code, Recorder

recorder = Recorder()
recorder.record(Code.DISCOVERED_IMAGE, None)
recorder.record(Code.UPLOADED, None)
recorder.total_assets()   # 1
summary = recorder.report()
```

`report` returns the summary text, prints it when uploads were counted, and
logs it line by line when the recorder has a logger.

## Configuration

`Configuration.write` stores the server URL and API key as JSON, creating
directories as needed; `config_read` reads it back. By default the file is
`photoferry/photoferry.json` under the user's configuration directory, or
`./photoferry.json` when no such directory is known.

## What the package does not do

photoferry has no client for the photo server's API and no command that scans
folders or archives and uploads them: it provides the models, readers, filters
and journal such a tool is built from, and `photoferry-read` is its only command.

## Running the tests

    pip install -e ".[test]"
    pytest