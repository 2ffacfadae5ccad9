import textwrap

import pytest

SAMPLE_FEED = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="utf-8"?>
    <feed xmlns="http://www.w3.org/2005/Atom">
      <title>Example Feed</title>
      <subtitle>Things that happened</subtitle>
      <id>https://example.com/feed.xml</id>
      <updated>2023-06-01T12:00:00+00:00</updated>
      <icon>https://example.com/favicon.ico</icon>
      <link href="https://example.com/feed.xml" rel="self" type="application/atom+xml"/>
      <link href="https://example.com/" rel="alternate"/>
      <author><name>Jane Doe</name><email>jane@example.com</email></author>
      <rights>CC-BY</rights>
      <entry>
        <id>https://example.com/posts/2021</id>
        <title>Twenty twenty-one</title>
        <updated>2021-03-01T00:00:00+00:00</updated>
        <published>2021-01-01T00:00:00+00:00</published>
        <category term="misc"/>
      </entry>
      <entry>
        <id>https://example.com/posts/2023</id>
        <title type="html">Twenty &lt;b&gt;twenty-three&lt;/b&gt;</title>
        <updated>2023-01-01T00:00:00Z</updated>
        <published>2023-01-01T00:00:00Z</published>
        <summary>Latest</summary>
        <content type="html" src="https://example.com/posts/2023">&lt;p&gt;Hi&lt;/p&gt;</content>
      </entry>
      <entry>
        <id>https://example.com/posts/2019</id>
        <title>Twenty nineteen</title>
        <updated>2022-05-01T00:00:00+00:00</updated>
        <published>2019-01-01T00:00:00+00:00</published>
      </entry>
      <entry>
        <id>https://example.com/posts/2022</id>
        <title>Twenty twenty-two</title>
        <updated>2022-01-01T00:00:00+00:00</updated>
        <published>2022-01-01T00:00:00+00:00</published>
      </entry>
    </feed>
    """
)


@pytest.fixture
def feed_path(tmp_path):
    """Write the sample feed to a temporary feed.xml and return its path."""
    path = tmp_path / "feed.xml"
    path.write_text(SAMPLE_FEED, encoding="utf-8")
    return path
