from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from notification_hubs.hub import NotificationHub
from notification_hubs.services.connection import parse_connection_string
from notification_hubs.services.transport import HubResponse
from notification_hubs.utils.operation_context import operation_id_var

CONNECTION_STRING = (
    "Endpoint=sb://testhub-ns.servicebus.windows.net/;"
    "SharedAccessKeyName=testAccessKeyName;"
    "SharedAccessKey=testAccessKey"
)
HUB_PATH = "testhub"
HUB_URL = "https://testhub-ns.servicebus.windows.net/testhub"
FIXED_NOW = 1_700_000_000

END_OF_EPOCH = datetime(9999, 12, 31, 23, 59, 59, 999000, tzinfo=UTC)

APPLE_REGISTRATION_XML = """<?xml version="1.0" encoding="utf-8"?>
<entry xmlns="http://www.w3.org/2005/Atom">
  <id>https://testhub-ns.servicebus.windows.net/testhub/registrations/8247220326459738692-7748251457295609952-3?api-version=2015-01</id>
  <title type="text">8247220326459738692-7748251457295609952-3</title>
  <published>2019-04-20T09:10:11Z</published>
  <updated>2019-04-23T09:10:11Z</updated>
  <link rel="self" href="https://testhub-ns.servicebus.windows.net/testhub/registrations/8247220326459738692-7748251457295609952-3?api-version=2015-01"/>
  <content type="application/xml">
    <AppleRegistrationDescription xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect" xmlns:i="http://www.w3.org/2001/XMLSchema-instance">
      <ExpirationTime>9999-12-31T23:59:59.999Z</ExpirationTime>
      <RegistrationId>8247220326459738692-7748251457295609952-3</RegistrationId>
      <ETag>1</ETag>
      <Tags>tag1,tag2,tag3</Tags>
      <DeviceToken>ABCDEFG</DeviceToken>
    </AppleRegistrationDescription>
  </content>
</entry>
"""

APPLE_TEMPLATE = (
    '{"aps":{"alert":{"title": "$(title)","body": "$(body)","badge": "$(badge)"}},'
    '"articleid":"$(articleid)","animal":"$(animal)"}'
)

APPLE_TEMPLATE_REGISTRATION_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<entry xmlns="http://www.w3.org/2005/Atom">
  <id>https://testhub-ns.servicebus.windows.net/testhub/registrations/5556163970238751145-4593285841060527077-1?api-version=2015-01</id>
  <title type="text">5556163970238751145-4593285841060527077-1</title>
  <published>2019-04-30T12:57:31Z</published>
  <updated>2019-04-30T12:57:31Z</updated>
  <content type="application/xml">
    <AppleTemplateRegistrationDescription xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect" xmlns:i="http://www.w3.org/2001/XMLSchema-instance">
      <ExpirationTime>9999-12-31T23:59:59.999</ExpirationTime>
      <RegistrationId>5556163970238751145-4593285841060527077-1</RegistrationId>
      <ETag>1</ETag>
      <Tags>tag1,tag3,dog,cat,horse</Tags>
      <DeviceToken>ABCDEFG</DeviceToken>
      <BodyTemplate><![CDATA[{APPLE_TEMPLATE}]]></BodyTemplate>
    </AppleTemplateRegistrationDescription>
  </content>
</entry>
"""

GCM_REGISTRATION_XML = """<?xml version="1.0" encoding="utf-8"?>
<entry xmlns="http://www.w3.org/2005/Atom">
  <id>https://testhub-ns.servicebus.windows.net/testhub/registrations/4603854756731398046-26535929789529194-1?api-version=2015-01</id>
  <title type="text">4603854756731398046-26535929789529194-1</title>
  <published>2019-04-20T09:19:06Z</published>
  <updated>2019-04-23T09:19:06Z</updated>
  <content type="application/xml">
    <GcmRegistrationDescription xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect" xmlns:i="http://www.w3.org/2001/XMLSchema-instance">
      <ExpirationTime>9999-12-31T23:59:59.999Z</ExpirationTime>
      <RegistrationId>4603854756731398046-26535929789529194-1</RegistrationId>
      <ETag>1</ETag>
      <Tags>tag1,tag3</Tags>
      <GcmRegistrationId>ANDROIDID</GcmRegistrationId>
    </GcmRegistrationDescription>
  </content>
</entry>
"""

GCM_TEMPLATE_REGISTRATION_XML = """<?xml version="1.0" encoding="utf-8"?>
<entry xmlns="http://www.w3.org/2005/Atom">
  <id>https://testhub-ns.servicebus.windows.net/testhub/registrations/1234-5678-1?api-version=2015-01</id>
  <title type="text">1234-5678-1</title>
  <published>2019-05-01T10:00:00Z</published>
  <updated>2019-05-01T10:00:00Z</updated>
  <content type="application/xml">
    <GcmTemplateRegistrationDescription xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect" xmlns:i="http://www.w3.org/2001/XMLSchema-instance">
      <ExpirationTime>9999-12-31T23:59:59.999Z</ExpirationTime>
      <RegistrationId>1234-5678-1</RegistrationId>
      <ETag>2</ETag>
      <Tags></Tags>
      <GcmRegistrationId>ANDROIDTEMPLATEID</GcmRegistrationId>
      <BodyTemplate><![CDATA[{"data":{"message":"$(message)"}}]]></BodyTemplate>
    </GcmTemplateRegistrationDescription>
  </content>
</entry>
"""


def _feed_entry(registration_id: str, description: str) -> str:
    return f"""
  <entry>
    <id>https://testhub-ns.servicebus.windows.net/testhub/registrations/{registration_id}?api-version=2015-01</id>
    <title type="text">{registration_id}</title>
    <published>2019-04-20T09:10:11Z</published>
    <updated>2019-04-23T09:10:11Z</updated>
    <content type="application/xml">
      {description}
    </content>
  </entry>"""


def _apple_description(registration_id: str, token: str, expiration: str = "9999-12-31T23:59:59.999Z") -> str:
    return (
        '<AppleRegistrationDescription xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect">'
        f"<ExpirationTime>{expiration}</ExpirationTime>"
        f"<RegistrationId>{registration_id}</RegistrationId>"
        "<ETag>1</ETag><Tags>tag1</Tags>"
        f"<DeviceToken>{token}</DeviceToken>"
        "</AppleRegistrationDescription>"
    )


_GCM_FEED_DESCRIPTION = (
    '<GcmRegistrationDescription xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect">'
    "<RegistrationId>reg-4</RegistrationId><Tags>tag1,tag3</Tags>"
    "<GcmRegistrationId>ANDROIDID</GcmRegistrationId>"
    "</GcmRegistrationDescription>"
)

REGISTRATIONS_FEED_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <id>https://testhub-ns.servicebus.windows.net/testhub/registrations?api-version=2015-01</id>
  <title type="text">Registrations</title>
  <updated>2019-04-23T09:10:11Z</updated>
  {_feed_entry("reg-1", _apple_description("reg-1", "ABCDEF"))}
  {_feed_entry("reg-2", _apple_description("reg-2", "QWERTY"))}
  {_feed_entry("reg-3", _apple_description("reg-3", "ZXCVBN"))}
  {_feed_entry("reg-4", _GCM_FEED_DESCRIPTION)}
</feed>
"""

REGISTRATIONS_FEED_WITH_BAD_ENTRY_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <id>https://testhub-ns.servicebus.windows.net/testhub/registrations?api-version=2015-01</id>
  <title type="text">Registrations</title>
  <updated>2019-04-23T09:10:11Z</updated>
  {_feed_entry("reg-1", _apple_description("reg-1", "ABCDEF"))}
  {_feed_entry("reg-bad", _apple_description("reg-bad", "BROKEN", expiration="31/12/9999"))}
  {_feed_entry("reg-3", _apple_description("reg-3", "ZXCVBN"))}
</feed>
"""

NOTIFICATION_DETAILS_XML = """<?xml version="1.0" encoding="utf-8"?>
<NotificationDetails xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect" xmlns:i="http://www.w3.org/2001/XMLSchema-instance">
  <NotificationId>7417926154322813345-1234</NotificationId>
  <Location>https://testhub-ns.servicebus.windows.net/testhub/messages/7417926154322813345-1234?api-version=2016-07</Location>
  <State>Completed</State>
  <EnqueueTime>2019-04-23T09:10:11Z</EnqueueTime>
  <StartTime>2019-04-23T09:10:12Z</StartTime>
  <EndTime>2019-04-23T09:10:13Z</EndTime>
  <NotificationBody>{"aps":{"alert":"Hello"}}</NotificationBody>
  <TargetPlatforms>apple</TargetPlatforms>
  <ApnsOutcomeCounts>
    <Outcome>
      <Name>Success</Name>
      <Count>3</Count>
    </Outcome>
    <Outcome>
      <Name>WrongToken</Name>
      <Count>1</Count>
    </Outcome>
  </ApnsOutcomeCounts>
</NotificationDetails>
"""


class FixedClock:
    """Clock frozen at a given unix time."""

    def __init__(self, now: int = FIXED_NOW):
        self.value = now

    def now(self) -> int:
        return self.value


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None


@dataclass
class RecordingTransport:
    """Transport that records requests and replays queued responses or errors."""

    responses: list[HubResponse | BaseException] = field(default_factory=list)
    requests: list[RecordedRequest] = field(default_factory=list)

    def queue(self, body: bytes | str = b"", status_code: int = 200, headers: Mapping[str, str] | None = None) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.responses.append(HubResponse(body=body, status_code=status_code, headers=dict(headers or {})))

    async def exec(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
    ) -> HubResponse:
        self.requests.append(RecordedRequest(method=method, url=url, headers=dict(headers), body=body))
        if not self.responses:
            return HubResponse()
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def last(self) -> RecordedRequest:
        return self.requests[-1]


@pytest.fixture(autouse=True)
def reset_operation_id():
    """Each test starts without a bound operation ID."""
    token = operation_id_var.set(None)
    yield
    operation_id_var.reset(token)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def descriptor():
    return parse_connection_string(CONNECTION_STRING)


@pytest.fixture
def hub(descriptor, transport, clock) -> NotificationHub:
    """Client wired to a recording transport and a fixed clock."""
    return NotificationHub(descriptor, HUB_PATH, transport=transport, clock=clock)
