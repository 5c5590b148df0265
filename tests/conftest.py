"""Shared fixtures: sample feeds and a recording mock transport."""

from __future__ import annotations

import httpx
import pytest

from sheet_feeds.auth.credentials import AccessToken
from sheet_feeds.feeds.client import GoogleSpreadsheet

KEY = "test-key"
FEEDS = "https://spreadsheets.google.com/feeds"

WORKSHEETS_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed xmlns='http://www.w3.org/2005/Atom' xmlns:openSearch='http://a9.com/-/spec/opensearchrss/1.0/' xmlns:gs='http://schemas.google.com/spreadsheets/2006'>
<id>{FEEDS}/worksheets/{KEY}/private/full</id>
<updated>2014-05-01T10:00:00.000Z</updated>
<title type='text'>Budget</title>
<author><name>owner</name><email>owner@example.com</email></author>
<openSearch:totalResults>2</openSearch:totalResults>
<entry><id>{FEEDS}/worksheets/{KEY}/private/full/od6</id><updated>2014-05-01T10:00:00.000Z</updated><title type='text'>Expenses</title><content type='text'>Expenses</content><link rel='http://schemas.google.com/spreadsheets/2006#listfeed' type='application/atom+xml' href='{FEEDS}/list/{KEY}/od6/private/full'/><gs:rowCount>100</gs:rowCount><gs:colCount>20</gs:colCount></entry>
<entry><id>{FEEDS}/worksheets/{KEY}/private/full/2</id><updated>2014-05-01T10:00:00.000Z</updated><title type='text'>Income</title><content type='text'>Income</content><gs:rowCount>5</gs:rowCount><gs:colCount>3</gs:colCount></entry>
</feed>"""

ALICE_ENTRY = (
    f"<entry><id>{FEEDS}/list/{KEY}/od6/private/full/cokwr</id>"
    "<updated>2014-05-01T10:00:00.000Z</updated>"
    "<title type='text'>Alice</title>"
    "<content type='text'>age: 30, note: a &amp; b</content>"
    f"<link rel='self' type='application/atom+xml' href='{FEEDS}/list/{KEY}/od6/private/full/cokwr'/>"
    f"<link rel='edit' type='application/atom+xml' href='{FEEDS}/list/{KEY}/od6/private/full/cokwr/v1'/>"
    "<gsx:name>Alice</gsx:name><gsx:age>30</gsx:age><gsx:note>a &amp; b</gsx:note></entry>"
)

BOB_ENTRY = (
    f"<entry><id>{FEEDS}/list/{KEY}/od6/private/full/cpzh4</id>"
    "<updated>2014-05-01T10:00:00.000Z</updated>"
    "<title type='text'>Bob</title>"
    "<content type='text'>note: x</content>"
    f"<link rel='edit' type='application/atom+xml' href='{FEEDS}/list/{KEY}/od6/private/full/cpzh4/v1'/>"
    "<gsx:name>Bob</gsx:name><gsx:age/><gsx:note>x</gsx:note></entry>"
)

LIST_FEED = (
    "<?xml version='1.0' encoding='UTF-8'?>"
    "<feed xmlns='http://www.w3.org/2005/Atom' "
    "xmlns:gsx='http://schemas.google.com/spreadsheets/2006/extended'>"
    f"<id>{FEEDS}/list/{KEY}/od6/private/full</id>"
    "<title type='text'>Expenses</title>\n"
    f"{ALICE_ENTRY}\n{BOB_ENTRY}\n</feed>"
)

EMPTY_LIST_FEED = (
    "<?xml version='1.0' encoding='UTF-8'?>"
    "<feed xmlns='http://www.w3.org/2005/Atom'>"
    f"<id>{FEEDS}/list/{KEY}/od6/private/full</id>"
    "<title type='text'>Expenses</title></feed>"
)

CELLS_FEED = f"""<?xml version='1.0' encoding='UTF-8'?>
<feed xmlns='http://www.w3.org/2005/Atom' xmlns:gs='http://schemas.google.com/spreadsheets/2006'>
<id>{FEEDS}/cells/{KEY}/od6/private/full</id>
<entry><id>{FEEDS}/cells/{KEY}/od6/private/full/R1C1</id><title type='text'>A1</title><content type='text'>name</content><link rel='self' type='application/atom+xml' href='{FEEDS}/cells/{KEY}/od6/private/full/R1C1'/><link rel='edit' type='application/atom+xml' href='{FEEDS}/cells/{KEY}/od6/private/full/R1C1/1a2b'/><gs:cell row='1' col='1' inputValue='name'>name</gs:cell></entry>
<entry><id>{FEEDS}/cells/{KEY}/od6/private/full/R2C2</id><title type='text'>B2</title><content type='text'>30</content><link rel='edit' type='application/atom+xml' href='{FEEDS}/cells/{KEY}/od6/private/full/R2C2/3c4d'/><gs:cell row='2' col='2' inputValue='30' numericValue='30.0'>30</gs:cell></entry>
</feed>"""

ATOM = "application/atom+xml; charset=UTF-8"


class FeedServer:
    """Records requests and answers them from a queue of responses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []

    def add(self, text: str = "", status: int = 200, content_type: str | None = ATOM):
        headers = {"content-type": content_type} if content_type else {}
        self.responses.append(httpx.Response(status, text=text, headers=headers))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def server() -> FeedServer:
    return FeedServer()


@pytest.fixture
def make_sheet(server):
    """Build a client whose requests go to the mock feed server."""

    def _make(auth=None, **kwargs) -> GoogleSpreadsheet:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
        return GoogleSpreadsheet(KEY, auth, http_client=http_client, **kwargs)

    return _make


@pytest.fixture
def bearer_token() -> AccessToken:
    return AccessToken(type="Bearer", value="test-access-token")
