"""Tests for telemetry extraction and message details decoding."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from notification_hubs.exceptions import RegistrationDecodeError
from notification_hubs.models.telemetry import NotificationOutcomeName, NotificationState
from notification_hubs.services.telemetry import (
    decode_notification_details,
    telemetry_from_location,
    telemetry_from_response,
)
from notification_hubs.services.transport import HubResponse

from conftest import NOTIFICATION_DETAILS_XML

LOCATION = (
    "https://messages.servicebus.windows.net/messagebus/messages/"
    "3288835312934927344-986564390439048203-1?api-version=2016-10"
)


class TestTelemetryFromLocation:
    def test_extracts_message_id(self):
        telemetry = telemetry_from_location(LOCATION)

        assert telemetry.notification_message_id == "3288835312934927344-986564390439048203-1"
        assert not telemetry.is_empty

    @pytest.mark.parametrize(
        "location",
        [
            None,
            "",
            "https://h.example.com/hub/registrations/1?api-version=2015-01",
            "https://h.example.com/hub/messages/1",
            "garbage",
        ],
    )
    def test_unparsable_location_is_empty(self, location):
        telemetry = telemetry_from_location(location)

        assert telemetry.notification_message_id is None
        assert telemetry.is_empty


class TestTelemetryFromResponse:
    def test_reads_location_header_case_insensitively(self):
        response = HubResponse(status_code=201, headers={"location": LOCATION})

        assert telemetry_from_response(response).notification_message_id == (
            "3288835312934927344-986564390439048203-1"
        )

    def test_missing_header_is_empty(self):
        assert telemetry_from_response(HubResponse()).is_empty

    def test_no_response_is_empty(self):
        assert telemetry_from_response(None).is_empty


class TestNotificationDetails:
    def test_decodes_details(self):
        details = decode_notification_details(NOTIFICATION_DETAILS_XML.encode())

        assert details.notification_id == "7417926154322813345-1234"
        assert details.state is NotificationState.COMPLETED
        assert details.enqueue_time == datetime(2019, 4, 23, 9, 10, 11, tzinfo=UTC)
        assert details.end_time == datetime(2019, 4, 23, 9, 10, 13, tzinfo=UTC)
        assert details.notification_body == '{"aps":{"alert":"Hello"}}'
        assert details.target_platforms == "apple"

        outcomes = details.outcomes["ApnsOutcomeCounts"]
        assert [(o.name, o.count) for o in outcomes] == [
            (NotificationOutcomeName.SUCCESS.value, 3),
            (NotificationOutcomeName.WRONG_TOKEN.value, 1),
        ]

    def test_unknown_state_maps_to_unknown(self):
        xml = (
            '<NotificationDetails xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect">'
            "<NotificationId>1</NotificationId><State>Teleported</State>"
            "</NotificationDetails>"
        )

        assert decode_notification_details(xml).state is NotificationState.UNKNOWN

    def test_wrong_document_raises(self):
        with pytest.raises(RegistrationDecodeError, match="expected NotificationDetails"):
            decode_notification_details(b"<feed/>")

    def test_bad_outcome_count_raises(self):
        xml = (
            '<NotificationDetails xmlns="http://schemas.microsoft.com/netservices/2010/10/servicebus/connect">'
            "<GcmOutcomeCounts><Outcome><Name>Success</Name><Count>many</Count></Outcome></GcmOutcomeCounts>"
            "</NotificationDetails>"
        )

        with pytest.raises(RegistrationDecodeError, match="invalid notification details"):
            decode_notification_details(xml)
