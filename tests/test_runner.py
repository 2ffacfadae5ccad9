from datetime import datetime, timezone
from pathlib import Path

import pytest

import kaboom.runner as runner
from kaboom import __version__
from kaboom.feeds import read_feed
from kaboom.links import StringableLink
from kaboom.models import Link, Person, Text
from kaboom.pruning import PruneStrategy
from kaboom.runner import (
    AddOptions,
    MetaOptions,
    PruneOptions,
    default_reject_path,
    run_add,
    run_meta,
    run_prune,
)

FIXED_NOW = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _frozen_now(monkeypatch):
    monkeypatch.setattr(runner, "_now", lambda: FIXED_NOW)


def _ids(entries):
    return [entry.id.rsplit("/", 1)[-1] for entry in entries]


# add


def test_run_add_inserts_entry_at_top(feed_path):
    published = datetime(2024, 5, 1, tzinfo=timezone.utc)
    result = run_add(
        feed_path,
        AddOptions(
            id="https://example.com/posts/new",
            title="New post",
            summary="Short",
            content="<p>Body</p>",
            content_type="html",
            content_language="en-us",
            author_names=["Ann", "Bob"],
            author_emails=["ann@example.com", "bob@example.com"],
            published_at=published,
        ),
    )

    feed = read_feed(feed_path)
    entry = feed.entries[0]
    assert result.output_text == "added=https://example.com/posts/new"
    assert len(feed.entries) == 5
    assert entry.title == Text("New post")
    assert entry.summary == Text("Short")
    assert entry.published == published
    assert entry.updated == FIXED_NOW
    assert feed.updated == FIXED_NOW
    assert entry.content.value == "<p>Body</p>"
    assert entry.content.src == "https://example.com/posts/new"
    assert entry.content.lang == "en-us"
    assert entry.authors == [
        Person(name="Ann", email="ann@example.com"),
        Person(name="Bob", email="bob@example.com"),
    ]


def test_run_add_names_without_emails(feed_path):
    run_add(feed_path, AddOptions(id="urn:x", title="X", author_names=["Ann"]))

    assert read_feed(feed_path).entries[0].authors == [Person(name="Ann")]


def test_run_add_mismatched_authors_raises(feed_path):
    original = feed_path.read_text(encoding="utf-8")

    with pytest.raises(ValueError, match="same number of times"):
        run_add(
            feed_path,
            AddOptions(
                id="urn:x",
                title="X",
                author_names=["Ann", "Bob"],
                author_emails=["ann@example.com"],
            ),
        )

    assert feed_path.read_text(encoding="utf-8") == original


def test_run_add_ignores_content_type_without_content(feed_path):
    run_add(feed_path, AddOptions(id="urn:x", title="X", content_type="html"))

    assert read_feed(feed_path).entries[0].content is None


def test_run_add_no_op_does_not_write(feed_path):
    original = feed_path.read_text(encoding="utf-8")

    result = run_add(feed_path, AddOptions(id="urn:x", title="X"), no_op=True)

    assert result.changed
    assert feed_path.read_text(encoding="utf-8") == original


def test_run_add_missing_feed_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_add(tmp_path / "missing.xml", AddOptions(id="urn:x", title="X"))


# meta


def test_run_meta_without_changes_does_not_write(feed_path):
    original = feed_path.read_text(encoding="utf-8")

    result = run_meta(feed_path, MetaOptions())

    assert not result.changed
    assert feed_path.read_text(encoding="utf-8") == original
    assert result.output_text.splitlines() == [
        "title=Example Feed",
        "subtitle=Things that happened",
        "uri=https://example.com/feed.xml",
        "updated_at=2023-06-01T12:00:00+00:00",
        "icon=https://example.com/favicon.ico",
        "link=https://example.com/feed.xml[rel=self][type=application/atom+xml]",
        "link=https://example.com/[rel=alternate]",
    ]


def test_run_meta_updates_fields_and_generator(feed_path):
    result = run_meta(
        feed_path,
        MetaOptions(
            title="Renamed",
            logo="https://example.com/logo.png",
            remove_icon=True,
            remove_subtitle=True,
        ),
    )

    feed = read_feed(feed_path)
    assert result.changed
    assert feed.title == Text("Renamed")
    assert feed.logo == "https://example.com/logo.png"
    assert feed.icon is None
    assert feed.subtitle is None
    assert feed.updated == FIXED_NOW
    assert feed.generator.value == "kaboom"
    assert feed.generator.version == __version__
    assert len(feed.entries) == 4


def test_run_meta_value_wins_over_remove_flag(feed_path):
    run_meta(feed_path, MetaOptions(icon="https://example.com/new.ico", remove_icon=True))

    assert read_feed(feed_path).icon == "https://example.com/new.ico"


def test_run_meta_no_generator(feed_path):
    run_meta(feed_path, MetaOptions(title="Renamed", no_generator=True))

    assert read_feed(feed_path).generator is None


def test_run_meta_generator_disabled_by_config(feed_path):
    run_meta(feed_path, MetaOptions(title="Renamed"), generator=False)

    assert read_feed(feed_path).generator is None


def test_run_meta_updates_existing_link_in_place(feed_path):
    run_meta(
        feed_path,
        MetaOptions(
            rel_links=[
                StringableLink.from_string("https://example.com/[lang=en-us]"),
                StringableLink.from_string("https://example.com/fr[rel=alternate][lang=fr-ca]"),
            ]
        ),
    )

    links = read_feed(feed_path).links
    assert links == [
        Link(
            href="https://example.com/feed.xml",
            rel="self",
            mime_type="application/atom+xml",
        ),
        Link(href="https://example.com/", rel="related", hreflang="en-us"),
        Link(href="https://example.com/fr", rel="alternate", hreflang="fr-ca"),
    ]


def test_run_meta_equivalent_link_is_not_a_change(feed_path):
    result = run_meta(
        feed_path,
        MetaOptions(rel_links=[StringableLink.from_string("https://example.com/[rel=alternate]")]),
    )

    assert not result.changed


def test_run_meta_remove_links_keeps_self(feed_path):
    run_meta(feed_path, MetaOptions(remove_links=True))

    assert [link.rel for link in read_feed(feed_path).links] == ["self"]


def test_run_meta_remove_links_with_new_links_replaces_all(feed_path):
    run_meta(
        feed_path,
        MetaOptions(
            remove_links=True,
            rel_links=[StringableLink.from_string("https://other.example.com/")],
        ),
    )

    assert read_feed(feed_path).links == [
        Link(href="https://other.example.com/", rel="related")
    ]


def test_run_meta_starts_new_feed(tmp_path):
    path = tmp_path / "new.xml"

    result = run_meta(path, MetaOptions(title="Fresh", uri="urn:fresh"))

    feed = read_feed(path)
    assert result.changed
    assert feed.id == "urn:fresh"
    assert feed.title == Text("Fresh")
    assert feed.entries == []


def test_run_meta_new_feed_requires_title_and_uri(tmp_path):
    with pytest.raises(ValueError, match="title and uri"):
        run_meta(tmp_path / "new.xml", MetaOptions(title="Only a title"))


def test_run_meta_json_output(feed_path):
    result = run_meta(feed_path, MetaOptions(as_json=True))

    assert '"uri": "https://example.com/feed.xml"' in result.output_text


def test_run_meta_no_op_reports_changes_without_writing(feed_path):
    original = feed_path.read_text(encoding="utf-8")

    result = run_meta(feed_path, MetaOptions(title="Renamed"), no_op=True)

    assert result.output_text.startswith("title=Renamed\n")
    assert feed_path.read_text(encoding="utf-8") == original


# prune


def test_default_reject_path():
    assert default_reject_path(Path("site/feed.xml")) == Path("site/feed.rej.xml")
    assert default_reject_path(Path("site/feed")) == Path("site/feed.rej.xml")
    assert default_reject_path(Path("feed.atom")) == Path("feed.atom.rej.xml")
    assert default_reject_path(Path("feed.xml"), ".old.xml") == Path("feed.old.xml")


def test_run_prune_writes_rejects_to_new_reject_file(feed_path):
    result = run_prune(feed_path, PruneOptions(count=2))

    feed = read_feed(feed_path)
    reject_path = feed_path.with_name("feed.rej.xml")
    rejected = read_feed(reject_path)

    assert _ids(feed.entries) == ["2023", "2022"]
    assert _ids(rejected.entries) == ["2021", "2019"]
    assert rejected.title == feed.title
    assert rejected.links == feed.links
    assert feed.updated == FIXED_NOW
    assert result.changed
    assert result.output_text.splitlines()[:3] == [
        "kept=2",
        "rejected=2",
        f"reject_file={reject_path}",
    ]


def test_run_prune_prepends_to_existing_reject_file(feed_path):
    run_prune(feed_path, PruneOptions(count=3))
    run_prune(feed_path, PruneOptions(count=1))

    assert _ids(read_feed(feed_path).entries) == ["2023"]
    assert _ids(read_feed(feed_path.with_name("feed.rej.xml")).entries) == [
        "2022",
        "2021",
        "2019",
    ]


def test_run_prune_custom_reject_file(feed_path, tmp_path):
    target = tmp_path / "archive" / "old.xml"
    target.parent.mkdir()

    run_prune(feed_path, PruneOptions(count=3, reject_file=str(target)))

    assert _ids(read_feed(target).entries) == ["2019"]
    assert not feed_path.with_name("feed.rej.xml").exists()


def test_run_prune_no_reject(feed_path):
    result = run_prune(feed_path, PruneOptions(count=1, no_reject=True))

    assert _ids(read_feed(feed_path).entries) == ["2023"]
    assert not feed_path.with_name("feed.rej.xml").exists()
    assert "reject_file" not in result.output_text


def test_run_prune_by_updated(feed_path):
    run_prune(feed_path, PruneOptions(count=2, strategy=PruneStrategy.RECENTLY_UPDATED))

    assert _ids(read_feed(feed_path).entries) == ["2023", "2019"]


def test_run_prune_since_date(feed_path):
    run_prune(
        feed_path,
        PruneOptions(
            count=10,
            strategy=PruneStrategy.SINCE_DATE,
            since_date=datetime(2022, 1, 1, tzinfo=timezone.utc),
        ),
    )

    assert _ids(read_feed(feed_path).entries) == ["2023", "2022"]


def test_run_prune_since_date_requires_date(feed_path):
    with pytest.raises(ValueError, match="since-date"):
        run_prune(feed_path, PruneOptions(count=1, strategy=PruneStrategy.SINCE_DATE))


def test_run_prune_skips_when_feed_is_small_enough(feed_path):
    original = feed_path.read_text(encoding="utf-8")

    result = run_prune(feed_path, PruneOptions(count=4))

    assert not result.changed
    assert result.output_text == "kept=4\nrejected=0"
    assert feed_path.read_text(encoding="utf-8") == original
    assert not feed_path.with_name("feed.rej.xml").exists()


def test_run_prune_no_op(feed_path):
    original = feed_path.read_text(encoding="utf-8")

    result = run_prune(feed_path, PruneOptions(count=1), no_op=True)

    assert "rejected=3" in result.output_text
    assert feed_path.read_text(encoding="utf-8") == original
    assert not feed_path.with_name("feed.rej.xml").exists()
