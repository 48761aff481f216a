"""
SMOKE TESTS - Fast, Deterministic, No Network

Run: py tests/test_smoke.py   (or: pytest)
Time: a few seconds (the large-set generation writes ~80k URLs)

These tests verify planning, rendering, validation and end-to-end generation
in temporary directories. Should pass 100% of the time if code is correct.
"""

import sys
import json
import os
import tempfile
import pandas as pd
from pathlib import Path
from datetime import date, datetime

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

TODAY = date(2024, 6, 15)

RESULTS = []

def log(name: str, passed: bool, detail: str = ""):
    status = "✅" if passed else "❌"
    RESULTS.append({"name": name, "passed": passed})
    print(f"  {status} {name}" + (f" → {detail}" if detail else ""))
    assert passed, f"{name}: {detail}"

def raises(exc_type, fn, *args, **kwargs):
    """Return the raised exception if it is exc_type, else None."""
    try:
        fn(*args, **kwargs)
    except exc_type as e:
        return e
    return None

# =============================================================================
# 1. IMPORTS (2 tests)
# =============================================================================

def test_imports():
    print("\n📦 IMPORTS")

    # 1.1 Core modules
    from sitemap_writer import (config, entries, urls, planner, schemas, emitter,
                                reader, validator, generator, manifest, main)
    log("Core modules", True)

    # 1.2 Dependencies
    import lxml, pandas
    from lxml import etree
    log("Dependencies", hasattr(etree, "XMLSchema"), f"lxml {etree.__version__}")

# =============================================================================
# 2. CONFIG (6 tests)
# =============================================================================

def test_config():
    print("\n⚙️  CONFIG")
    from sitemap_writer.config import (GenerationConfig, load_config, validate_config,
                                       build_generation_config, DEFAULT_MAX_URLS_PER_FILE)
    from sitemap_writer.errors import ConfigError

    # 2.1 Defaults and base URL trimming
    cfg = GenerationConfig(output_dir="out", base_url="https://example.com/")
    log("Base URL trimmed", cfg.base_url == "https://example.com", cfg.base_url)
    log("Sitemap base defaults to base", cfg.sitemap_base_url == "https://example.com"
        and cfg.max_urls_per_file == DEFAULT_MAX_URLS_PER_FILE)

    # 2.2 Limits enforced
    err = raises(ConfigError, GenerationConfig, output_dir="out",
                 base_url="https://example.com", max_urls_per_file=50001)
    log("Rejects > 50,000 URLs per file", err is not None)

    # 2.3 Config dict validation
    good = {"base_url": "https://example.com", "entries_csv": "urls.csv"}
    bad = {"base_url": "https://example.com"}
    log("validate_config", validate_config(good) and not validate_config(bad))

    # 2.4 load_config from disk
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "config.json")
        with open(path, "w") as f:
            json.dump({**good, "max_urls_per_file": 100, "output_directory": tmp}, f)
        loaded = load_config(path)
        built = build_generation_config(loaded)
        log("load_config + build", loaded is not None and built.max_urls_per_file == 100
            and built.output_dir == tmp)
        log("Missing config file", load_config(os.path.join(tmp, "nope.json")) is None)

    # 2.5 A stylesheet URL that would close the processing instruction
    err = raises(ConfigError, GenerationConfig, output_dir="out", base_url="https://example.com",
                 stylesheet_url="https://example.com/s.xsl?>x")
    log("Rejects '?>' in stylesheet URL", err is not None)

# =============================================================================
# 3. LASTMOD NORMALIZATION (7 tests)
# =============================================================================

def test_lastmod():
    print("\n📅 LASTMOD")
    from sitemap_writer.entries import normalize_lastmod, SitemapSet, URLEntry

    today = TODAY.isoformat()

    log("Past date kept", normalize_lastmod("2023-10-25", TODAY) == "2023-10-25")
    log("Today kept", normalize_lastmod(today, TODAY) == today)
    log("Invalid string → today", normalize_lastmod("invalid-date", TODAY) == today)
    log("Future date → today", normalize_lastmod("2024-06-16", TODAY) == today)
    log("Impossible date → today", normalize_lastmod("2023-02-30", TODAY) == today)
    log("Empty / unpadded → today", normalize_lastmod("", TODAY) == today
        and normalize_lastmod("2024-6-1", TODAY) == today)

    # 3.7 Idempotence + SitemapSet applies it
    values = ["2023-10-25", "invalid-date", "2999-01-01", "", None]
    once = [normalize_lastmod(v, TODAY) for v in values]
    twice = [normalize_lastmod(v, TODAY) for v in once]
    s = SitemapSet(today=TODAY)
    s.add_url({"loc": "/a", "lastmod": "bogus"})
    s.add_urls([URLEntry(loc="/b", lastmod="2020-01-01"), URLEntry(loc="/c", lastmod=date(2019, 5, 4))])
    log("Idempotent + applied on add", once == twice
        and [e.lastmod for e in s] == [today, "2020-01-01", "2019-05-04"])

# =============================================================================
# 4. URL RESOLUTION (6 tests)
# =============================================================================

def test_url_resolution():
    print("\n🔗 URL RESOLUTION")
    from sitemap_writer.urls import resolve, resolve_sitemap_url
    from sitemap_writer.errors import MalformedURLError

    log("Root path", resolve("https://example.com", "/") == "https://example.com/")
    log("Relative path", resolve("https://example.com", "about") == "https://example.com/about")
    log("Absolute unchanged", resolve("https://example.com", "https://other.org/x?y=1") == "https://other.org/x?y=1")

    ref = resolve_sitemap_url("https://cdn.example.com/sitemaps", "sitemap_1.xml")
    log("Sitemap base keeps path", ref == "https://cdn.example.com/sitemaps/sitemap_1.xml", ref)

    bad = [
        raises(MalformedURLError, resolve, "not a url", "/x"),
        raises(MalformedURLError, resolve, "https://example.com", "http://[::1"),
        raises(MalformedURLError, resolve, "https://example.com", ""),
    ]
    log("Malformed URLs rejected", all(e is not None for e in bad))

    # 4.6 Spaces in a path are percent-encoded, spaces in a host are not allowed
    spaced = resolve("https://example.com", "/about us")
    host = raises(MalformedURLError, resolve, "https://example.com", "https://exa mple.com/")
    log("Space handling", spaced == "https://example.com/about%20us" and host is not None, spaced)

# =============================================================================
# 5. BATCH PLANNER (4 tests)
# =============================================================================

def test_planner():
    print("\n🧮 PLANNER")
    from sitemap_writer.planner import plan

    # 5.1 Single file
    p = plan(list(range(5)), 5)
    log("n == max → single", not p.is_indexed and p.filenames == ["sitemap.xml"]
        and list(p.shards[0].entries) == [0, 1, 2, 3, 4])

    # 5.2 Shards preserve order, no loss or duplication
    items = list(range(7))
    p = plan(items, 3)
    flattened = [x for shard in p.shards for x in shard.entries]
    log("7 / 3 → 3 shards", p.filenames == ["sitemap_1.xml", "sitemap_2.xml", "sitemap_3.xml"]
        and [len(s) for s in p.shards] == [3, 3, 1] and flattened == items
        and p.index_filename == "sitemap_index.xml")

    # 5.3 Ceiling division on the large default limit
    p = plan(list(range(60002)), 33333)
    log("60,002 / 33,333 → 2 shards", [len(s) for s in p.shards] == [33333, 26669])
    p = plan(list(range(80002)), 33333)
    log("80,002 / 33,333 → 3 shards", [len(s) for s in p.shards] == [33333, 33333, 13336])

# =============================================================================
# 6. EMITTER (6 tests)
# =============================================================================

def test_emitter():
    print("\n🖨️  EMITTER")
    from sitemap_writer.emitter import SitemapEmitter, IndexRef
    from sitemap_writer.entries import URLEntry
    from sitemap_writer.errors import SerializationError

    with tempfile.TemporaryDirectory() as tmp:
        emitter = SitemapEmitter(tmp)
        entries = [
            URLEntry(loc="https://example.com/", lastmod="2023-10-25", changefreq="daily", priority="1.0"),
            URLEntry(loc="https://example.com/about"),
        ]
        data = emitter.render_urlset(entries)
        lines = data.decode("utf-8").split("\n")

        # 6.1 Header + namespace + indentation
        log("XML declaration", lines[0] == '<?xml version="1.0" encoding="UTF-8"?>')
        log("Root + 2-space indent", lines[1] == '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            and "\n  <url>\n    <loc>https://example.com/</loc>" in data.decode("utf-8"))

        # 6.2 Optional fields omitted when empty
        second = data.decode("utf-8").split("<url>")[2]
        log("Empty fields omitted", "<lastmod" not in second and "<changefreq" not in second
            and "<priority" not in second)

        # 6.3 Atomic write returns byte count, leaves no temp files
        size = emitter.emit_file("sitemap.xml", entries)
        idx_size = emitter.emit_index([IndexRef("https://example.com/sitemap_1.xml", "2024-06-15")],
                                      "sitemap_index.xml")
        on_disk = os.path.getsize(os.path.join(tmp, "sitemap.xml"))
        log("emit_file byte count", size == on_disk == len(data) and idx_size > 0
            and sorted(os.listdir(tmp)) == ["sitemap.xml", "sitemap_index.xml"])

        # 6.4 Control characters can't be serialized
        err = raises(SerializationError, emitter.render_urlset, [URLEntry(loc="https://example.com/\x01")])
        log("SerializationError", err is not None)

        # 6.5 Stylesheet URL that would end the PI early
        err = raises(SerializationError, SitemapEmitter(tmp, stylesheet_url="x.xsl?>").render_urlset, entries)
        log("Stylesheet PI guarded", err is not None)

# =============================================================================
# 7. VALIDATOR (6 tests)
# =============================================================================

def _urlset(changefreq="daily", priority="0.5"):
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url>
    <loc>https://example.com/</loc>
    <lastmod>2024-01-01</lastmod>
    <changefreq>{changefreq}</changefreq>
    <priority>{priority}</priority>
  </url>
</urlset>
""".encode("utf-8")

def test_validator():
    print("\n🛡️  VALIDATOR")
    from sitemap_writer.validator import SitemapValidator
    from sitemap_writer.reader import SitemapReader
    from sitemap_writer.schemas import SchemaKind
    from sitemap_writer.errors import SchemaViolationError, IndexParseError, StorageError
    from sitemap_writer.generator import generate

    v = SitemapValidator()

    # 7.1 In-bounds documents pass
    v.validate_bytes(_urlset(), SchemaKind.URLSET)
    v.validate_bytes(_urlset("never", "1.0"), SchemaKind.URLSET)
    v.validate_bytes(_urlset("always", "0.0"), SchemaKind.URLSET)
    log("Valid urlset passes", True)

    # 7.2 Out-of-bounds values rejected
    bad_freq = raises(SchemaViolationError, v.validate_bytes, _urlset(changefreq="sometimes"), SchemaKind.URLSET)
    bad_prio = raises(SchemaViolationError, v.validate_bytes, _urlset(priority="1.5"), SchemaKind.URLSET)
    neg_prio = raises(SchemaViolationError, v.validate_bytes, _urlset(priority="-0.1"), SchemaKind.URLSET)
    log("Bad changefreq / priority rejected", all(e is not None for e in [bad_freq, bad_prio, neg_prio]),
        bad_freq.message if bad_freq else "")

    # 7.3 Wrong schema kind rejected
    wrong = raises(SchemaViolationError, v.validate_bytes, _urlset(), SchemaKind.SITEMAPINDEX)
    log("urlset is not a sitemapindex", wrong is not None)

    # 7.4 Parse-back errors are distinct
    reader = SitemapReader()
    err = raises(IndexParseError, reader.parse, b"<sitemapindex><sitemap>", "broken.xml")
    log("IndexParseError on malformed index", err is not None and err.path == "broken.xml")

    with tempfile.TemporaryDirectory() as tmp:
        entries = [{"loc": f"/p/{i}"} for i in range(7)]
        generate(tmp, "https://example.com", None, None, entries, max_per_file=3, today=TODAY)

        # 7.5 Missing shard is a storage problem, not a schema one
        os.remove(os.path.join(tmp, "sitemap_2.xml"))
        err = raises(StorageError, v.validate_index_and_shards, os.path.join(tmp, "sitemap_index.xml"))
        log("Missing shard → StorageError", err is not None and err.path.endswith("sitemap_2.xml"))

        # 7.6 File violation carries its path
        bad_path = os.path.join(tmp, "sitemap_3.xml")
        with open(bad_path, "wb") as f:
            f.write(_urlset(priority="2"))
        err = raises(SchemaViolationError, v.validate_file, bad_path, SchemaKind.URLSET)
        log("Violation carries path", err is not None and err.path == bad_path)

# =============================================================================
# 8. GENERATION SCENARIOS (7 tests)
# =============================================================================

def test_generation():
    print("\n🏗️  GENERATION")
    from sitemap_writer.generator import SitemapGenerator, generate
    from sitemap_writer.config import GenerationConfig
    from sitemap_writer.reader import SitemapReader
    from sitemap_writer.errors import MalformedURLError, SchemaViolationError

    reader = SitemapReader()

    with tempfile.TemporaryDirectory() as tmp:
        # 8.1 Scenario A: small set → single sitemap.xml
        out = os.path.join(tmp, "a")
        result = generate(out, "https://example.com", None, None,
                          [{"loc": "/", "lastmod": "2023-10-25", "changefreq": "daily", "priority": "1.0"},
                           {"loc": "/about", "lastmod": "invalid-date", "changefreq": "monthly", "priority": "0.8"}],
                          max_per_file=50000, today=TODAY)
        parsed = reader.parse_file(os.path.join(out, "sitemap.xml"))
        locs = [u["loc"] for u in parsed["urls"]]
        log("Scenario A", os.listdir(out) == ["sitemap.xml"] and not result.is_indexed
            and locs == ["https://example.com/", "https://example.com/about"], str(locs))

        # 8.2 Scenario C: invalid lastmod written as today
        log("Scenario C", parsed["urls"][1]["lastmod"] == TODAY.isoformat()
            and parsed["urls"][0]["lastmod"] == "2023-10-25")

        # 8.3 Scenario D: stylesheet on line 2 of every document
        out = os.path.join(tmp, "d")
        xsl = "https://example.com/sitemap.xsl"
        generate(out, "https://example.com", None, xsl, [{"loc": f"/p/{i}"} for i in range(5)],
                 max_per_file=2, today=TODAY)
        second_lines = []
        for name in sorted(os.listdir(out)):
            with open(os.path.join(out, name), "rb") as f:
                second_lines.append(f.read().split(b"\n")[1].decode("utf-8"))
        log("Scenario D", len(second_lines) == 4
            and all(l == f'<?xml-stylesheet type="text/xsl" href="{xsl}"?>' for l in second_lines))

        # 8.4 Scenario B: large set → index + 3 shards, order preserved
        out = os.path.join(tmp, "b")
        n = 80002
        config = GenerationConfig(output_dir=out, base_url="https://www.example.com",
                                  sitemap_base_url="https://cdn.example.com/sitemaps/")
        gen = SitemapGenerator(config, today=TODAY)
        gen.add_urls({"loc": f"/page/{i}", "changefreq": "weekly", "priority": "0.5"} for i in range(n))
        result = gen.generate()
        index = reader.parse_file(os.path.join(out, "sitemap_index.xml"))
        expected_refs = [f"https://cdn.example.com/sitemaps/sitemap_{i}.xml" for i in (1, 2, 3)]
        all_locs = []
        for i in (1, 2, 3):
            all_locs.extend(u["loc"] for u in reader.parse_file(os.path.join(out, f"sitemap_{i}.xml"))["urls"])
        log("Scenario B", result.index_filename == "sitemap_index.xml"
            and [s["loc"] for s in index["urls"]] == expected_refs
            and all(s["lastmod"] == TODAY.isoformat() for s in index["urls"])
            and [f.url_count for f in result.files] == [33333, 33333, 13336, 3]
            and all_locs == [f"https://www.example.com/page/{i}" for i in range(n)])

        # 8.5 Malformed URL aborts before any write
        out = os.path.join(tmp, "m")
        err = raises(MalformedURLError, generate, out, "https://example.com", None, None,
                     [{"loc": "/ok"}, {"loc": "http://[::1"}], today=TODAY)
        log("MalformedURL before write", err is not None and not os.path.exists(out))

        # 8.6 First invalid shard (in index order) is the one reported
        out = os.path.join(tmp, "v")
        entries = [{"loc": f"/p/{i}", "changefreq": "weekly"} for i in range(9)]
        entries[7]["changefreq"] = "fortnightly"
        entries[4]["priority"] = "3.0"
        err = raises(SchemaViolationError, generate, out, "https://example.com", None, None,
                     entries, max_per_file=3, today=TODAY)
        log("First bad shard reported", err is not None and err.path.endswith("sitemap_2.xml")
            and os.path.exists(os.path.join(out, "sitemap_3.xml")), str(err))

        # 8.7 Empty set writes sitemap.xml, which then fails the schema (no <url>)
        out = os.path.join(tmp, "e")
        err = raises(SchemaViolationError, SitemapGenerator(
            GenerationConfig(output_dir=out, base_url="https://example.com")).generate)
        log("Empty set → SchemaViolationError", err is not None and os.listdir(out) == ["sitemap.xml"]
            and err.path == os.path.join(out, "sitemap.xml"))

# =============================================================================
# 9. CSV INPUT + MANIFEST (3 tests)
# =============================================================================

def test_manifest():
    print("\n💾 MANIFEST")
    from sitemap_writer.manifest import load_entries_csv, save_manifest, MANIFEST_COLUMNS
    from sitemap_writer.generator import generate
    from sitemap_writer.main import main

    with tempfile.TemporaryDirectory() as tmp:
        # 9.1 CSV loading
        csv_path = os.path.join(tmp, "urls.csv")
        Path(csv_path).write_text("loc,lastmod,priority\n/,2023-01-01,1.0\n,2023-01-01,0.5\n/about,,\n")
        entries = load_entries_csv(csv_path)
        log("CSV entries", [e.loc for e in entries] == ["/", "/about"]
            and entries[0].priority == "1.0" and entries[1].changefreq == "")

        # 9.2 Manifest schema
        result = generate(os.path.join(tmp, "out"), "https://example.com", None, None,
                          entries, max_per_file=1, today=TODAY)
        manifest_path = os.path.join(tmp, "manifest.csv")
        save_manifest(result, manifest_path)
        df = pd.read_csv(manifest_path)
        log("Manifest schema", list(df.columns) == MANIFEST_COLUMNS and len(df) == 3
            and df.loc[df["kind"] == "urlset", "url_count"].sum() == 2)

        # 9.3 main() end to end from config.json
        config_path = os.path.join(tmp, "config.json")
        with open(config_path, "w") as f:
            json.dump({
                "base_url": "https://example.com",
                "entries_csv": csv_path,
                "output_directory": os.path.join(tmp, "main_out"),
                "manifest_csv": os.path.join(tmp, "main_out", "manifest.csv"),
            }, f)
        code = main(config_path)
        log("main() run", code == 0 and os.path.exists(os.path.join(tmp, "main_out", "sitemap.xml"))
            and os.path.exists(os.path.join(tmp, "main_out", "manifest.csv")))

# =============================================================================
# 10. STORAGE + PARSE-BACK ERRORS (3 tests)
# =============================================================================

def test_storage_errors():
    print("\n🧱 STORAGE ERRORS")
    from sitemap_writer.generator import generate
    from sitemap_writer.emitter import SitemapEmitter
    from sitemap_writer.entries import URLEntry
    from sitemap_writer.validator import SitemapValidator
    from sitemap_writer.errors import StorageError, IndexParseError

    with tempfile.TemporaryDirectory() as tmp:
        # 10.1 Output directory path is an existing regular file
        blocker = os.path.join(tmp, "not_a_dir")
        Path(blocker).write_text("x")
        err = raises(StorageError, generate, blocker, "https://example.com", None, None,
                     [{"loc": "/"}], today=TODAY)
        log("Directory creation failure", err is not None and err.path == blocker)

        # 10.2 Write fails when the target name is taken by a directory; temp file is removed
        out = os.path.join(tmp, "out")
        os.makedirs(os.path.join(out, "sitemap.xml", "occupied"))
        err = raises(StorageError, SitemapEmitter(out).emit_file, "sitemap.xml",
                     [URLEntry(loc="https://example.com/")])
        log("Write failure cleans up", err is not None and os.listdir(out) == ["sitemap.xml"]
            and os.path.isdir(os.path.join(out, "sitemap.xml")))

        # 10.3 Index <loc> without a filename cannot be mapped to a shard
        index_path = os.path.join(tmp, "sitemap_index.xml")
        Path(index_path).write_text(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            '<sitemap><loc>https://example.com/</loc></sitemap></sitemapindex>\n'
        )
        err = raises(IndexParseError, SitemapValidator().validate_index_and_shards, index_path)
        log("Index loc without filename", err is not None and err.path == index_path)

# =============================================================================
# RUNNER
# =============================================================================

def run_all():
    start = datetime.now()
    print("\n" + "=" * 50)
    print("🧪 SMOKE TESTS (Fast, Deterministic)")
    print("=" * 50)

    for test in [test_imports, test_config, test_lastmod, test_url_resolution,
                 test_planner, test_emitter, test_validator, test_generation, test_manifest,
                 test_storage_errors]:
        try:
            test()
        except AssertionError:
            pass

    passed = sum(1 for r in RESULTS if r["passed"])
    total = len(RESULTS)
    duration = (datetime.now() - start).total_seconds()

    print("\n" + "=" * 50)
    if passed == total:
        print(f"🎉 ALL PASSED: {passed}/{total} in {duration:.2f}s")
    else:
        print(f"⚠️  {passed}/{total} passed in {duration:.2f}s")
        print("\nFailed:")
        for r in RESULTS:
            if not r["passed"]:
                print(f"  - {r['name']}")
    print("=" * 50 + "\n")

    return passed == total

if __name__ == "__main__":
    sys.exit(0 if run_all() else 1)
