"""Tests for Garmin Connect sync operations."""

import pytest
from datetime import date
from unittest.mock import patch

from requests import HTTPError, Response

from workout_sync.errors import (
    AuthExpired,
    NotConnected,
    NotFound,
    UnsupportedOperation,
    VendorUnavailable,
)
from workout_sync.garmin_sync import body_battery_level
from workout_sync.model import Workout, WorkoutStep
from tests.conftest import TEST_USER


def http_error(status):
    response = Response()
    response.status_code = status
    return HTTPError(f"{status} Error", response=response)


@pytest.fixture
def sdk():
    with patch("workout_sync.garmin_sync.sdk") as mock_sdk:
        yield mock_sdk


@pytest.fixture
def threshold_run():
    return Workout(
        name="5x1k",
        sport_type="running",
        scheduled_date=date(2026, 3, 1),
        steps=[
            WorkoutStep("warmup", "time", 600, "heart.rate.zone", 100, 120),
            WorkoutStep("repeat", repeat_count=5, child_steps=[
                WorkoutStep("interval", "distance", 1000),
                WorkoutStep("recovery", "time", 120),
            ]),
            WorkoutStep("cooldown", "time", 300),
        ],
    )


class TestPushWorkout:
    def test_push_and_schedule(self, garmin, sdk, garmin_handle, threshold_run):
        sdk.add_workout.return_value = {"workoutId": 987654}

        result = garmin.push_workout(TEST_USER, threshold_run)

        assert result.to_dict() == {
            "vendor_workout_id": "987654",
            "scheduled": True,
            "scheduled_date": "2026-03-01",
        }
        payload = sdk.add_workout.call_args[0][1]
        assert payload["workoutName"] == "5x1k"
        assert payload["workoutSegments"][0]["workoutSteps"][1]["numberOfIterations"] == 5
        sdk.schedule_workout.assert_called_once_with(garmin_handle, "987654", date(2026, 3, 1))

    def test_undated_workout_is_not_scheduled(self, garmin, sdk, threshold_run):
        threshold_run.scheduled_date = None
        sdk.add_workout.return_value = {"workoutId": 1}

        result = garmin.push_workout(TEST_USER, threshold_run)

        assert result.to_dict() == {"vendor_workout_id": "1", "scheduled": False}
        sdk.schedule_workout.assert_not_called()

    def test_schedule_failure_keeps_push(self, garmin, sdk, threshold_run):
        sdk.add_workout.return_value = {"workoutId": 42}
        sdk.schedule_workout.side_effect = http_error(500)

        result = garmin.push_workout(TEST_USER, threshold_run)

        assert result.vendor_workout_id == "42"
        assert result.scheduled is False
        assert "schedule workout" in result.schedule_error
        sdk.delete_workout.assert_not_called()

    def test_missing_workout_id(self, garmin, sdk, threshold_run):
        sdk.add_workout.return_value = {}
        with pytest.raises(VendorUnavailable):
            garmin.push_workout(TEST_USER, threshold_run)

    def test_reconnect_then_succeed(self, garmin, sdk, garmin_login, threshold_run):
        sdk.add_workout.side_effect = [Exception("401 Unauthorized"), {"workoutId": 7}]

        result = garmin.push_workout(TEST_USER, threshold_run)

        assert result.vendor_workout_id == "7"
        assert result.scheduled is True
        assert garmin_login.call_count == 2
        assert sdk.add_workout.call_count == 2

    def test_reconnect_then_fail(self, garmin, sdk, garmin_login, threshold_run):
        sdk.add_workout.side_effect = Exception("401 Unauthorized")
        garmin_login.side_effect = Exception("password changed")

        with pytest.raises(AuthExpired) as exc_info:
            garmin.push_workout(TEST_USER, threshold_run)

        assert exc_info.value.vendor == "garmin"
        assert "Reconnect Garmin Connect" in exc_info.value.hint

    def test_second_failure_is_vendor_unavailable(self, garmin, sdk, threshold_run):
        sdk.add_workout.side_effect = http_error(502)
        with pytest.raises(VendorUnavailable) as exc_info:
            garmin.push_workout(TEST_USER, threshold_run)
        assert exc_info.value.action == "push workout"
        assert sdk.add_workout.call_count == 2

    def test_not_connected(self, garmin, sdk, threshold_run):
        with pytest.raises(NotConnected):
            garmin.push_workout("stranger", threshold_run)
        sdk.add_workout.assert_not_called()

    def test_swim_without_structured_support(self, garmin, sdk):
        swim = Workout(name="Swim", sport_type="swimming", steps=[
            WorkoutStep("interval", "distance", 400),
        ])
        with pytest.raises(UnsupportedOperation) as exc_info:
            garmin.push_workout(TEST_USER, swim, supports_structured_swim=False)
        assert exc_info.value.fallback_description == "- 400mtr"
        assert exc_info.value.to_dict()["fallback_description"] == "- 400mtr"
        sdk.add_workout.assert_not_called()


class TestCacheInteraction:
    def test_activities_are_cached(self, garmin, sdk):
        sdk.get_activities.return_value = [{"activityId": 1, "activityName": "Run"}]
        first = garmin.fetch_activities(TEST_USER, 5)
        second = garmin.fetch_activities(TEST_USER, 5)
        assert first == second
        sdk.get_activities.assert_called_once()

    def test_cache_expires(self, garmin, sdk, clock):
        sdk.get_activities.return_value = []
        garmin.fetch_activities(TEST_USER)
        clock.advance(301)
        garmin.fetch_activities(TEST_USER)
        assert sdk.get_activities.call_count == 2

    def test_write_invalidates_every_read(self, garmin, sdk, threshold_run):
        sdk.get_activities.return_value = []
        sdk.get_calendar.return_value = {"calendarItems": []}
        sdk.add_workout.return_value = {"workoutId": 1}

        garmin.fetch_activities(TEST_USER)
        garmin.fetch_calendar(TEST_USER, 2026, 2)
        garmin.push_workout(TEST_USER, threshold_run)
        garmin.fetch_activities(TEST_USER)
        garmin.fetch_calendar(TEST_USER, 2026, 2)

        assert sdk.get_activities.call_count == 2
        assert sdk.get_calendar.call_count == 2

    def test_failed_write_keeps_cache(self, garmin, sdk):
        sdk.get_activities.return_value = []
        sdk.delete_workout.side_effect = http_error(500)
        garmin.fetch_activities(TEST_USER)
        with pytest.raises(VendorUnavailable):
            garmin.delete_workout(TEST_USER, "1")
        garmin.fetch_activities(TEST_USER)
        sdk.get_activities.assert_called_once()


class TestReads:
    def test_activity_mapping(self, garmin, sdk):
        sdk.get_activities.return_value = [{
            "activityId": 111,
            "activityName": "Morning Run",
            "activityType": {"typeKey": "running"},
            "distance": 10000.0,
            "duration": 3000.0,
            "startTimeLocal": "2026-02-19 07:00:00",
            "averageHR": 150.0,
            "maxHR": 171.0,
            "averageSpeed": 4.0,
            "startLatitude": 52.1,
            "startLongitude": 4.3,
            "locationName": "Leiden",
        }]
        activity = garmin.fetch_activities(TEST_USER)[0]
        assert activity.activity_id == 111
        assert activity.activity_type == "running"
        assert activity.average_pace == 250
        assert activity.location_name == "Leiden"

    def test_activity_defaults(self, garmin, sdk):
        sdk.get_activities.return_value = [{"activityId": 1}]
        activity = garmin.fetch_activities(TEST_USER)[0]
        assert activity.activity_type == "unknown"
        assert activity.average_pace is None
        assert activity.distance == 0

    def test_calendar_defaults_to_current_month(self, garmin, sdk, garmin_handle):
        sdk.get_calendar.return_value = {"calendarItems": []}
        garmin.fetch_calendar(TEST_USER)
        sdk.get_calendar.assert_called_once_with(garmin_handle, 2026, 1)


class TestReschedule:
    def _calendar(self, feeds):
        return lambda client, year, month: feeds.get((year, month), {"calendarItems": []})

    def test_moves_single_entry(self, garmin, sdk, garmin_handle):
        sdk.get_calendar.side_effect = self._calendar({
            (2026, 1): {"calendarItems": [
                {"id": 555, "itemType": "workout", "workoutId": 123, "date": "2026-02-21"},
            ]},
        })

        result = garmin.reschedule_workout(TEST_USER, "123", date(2026, 2, 23), date(2026, 2, 21))

        assert result.to_dict() == {"scheduled_date": "2026-02-23"}
        sdk.delete_schedule.assert_called_once_with(garmin_handle, 555)
        sdk.schedule_workout.assert_called_once_with(garmin_handle, "123", date(2026, 2, 23))
        scanned = [c[0][1:] for c in sdk.get_calendar.call_args_list]
        assert scanned == [(2026, 1), (2026, 2)]

    def test_picks_occurrence_on_current_date(self, garmin, sdk, garmin_handle):
        sdk.get_calendar.side_effect = self._calendar({
            (2026, 1): {"calendarItems": [
                {"id": 1, "itemType": "workout", "workoutId": 123, "date": "2026-02-14"},
                {"id": 2, "itemType": "workout", "workoutId": 123, "date": "2026-02-21"},
            ]},
        })
        garmin.reschedule_workout(TEST_USER, "123", date(2026, 2, 23), date(2026, 2, 21))
        sdk.delete_schedule.assert_called_once_with(garmin_handle, 2)

    def test_finds_entry_in_next_month(self, garmin, sdk, garmin_handle):
        sdk.get_calendar.side_effect = self._calendar({
            (2026, 2): {"calendarItems": [
                {"id": 9, "itemType": "workout", "workoutId": 123, "date": "2026-03-02"},
            ]},
        })
        garmin.reschedule_workout(TEST_USER, "123", date(2026, 3, 4))
        sdk.delete_schedule.assert_called_once_with(garmin_handle, 9)

    def test_not_found(self, garmin, sdk, garmin_login):
        sdk.get_calendar.side_effect = self._calendar({})
        with pytest.raises(NotFound):
            garmin.reschedule_workout(TEST_USER, "123", date(2026, 2, 23))
        sdk.delete_schedule.assert_not_called()
        sdk.schedule_workout.assert_not_called()
        assert garmin_login.call_count == 1

    def test_ambiguous_occurrences_not_found(self, garmin, sdk):
        sdk.get_calendar.side_effect = self._calendar({
            (2026, 1): {"calendarItems": [
                {"id": 1, "itemType": "workout", "workoutId": 123, "date": "2026-02-14"},
                {"id": 2, "itemType": "workout", "workoutId": 123, "date": "2026-02-21"},
            ]},
        })
        with pytest.raises(NotFound):
            garmin.reschedule_workout(TEST_USER, "123", date(2026, 2, 23))
        sdk.delete_schedule.assert_not_called()

    def test_retry_does_not_search_deleted_entry_again(self, garmin, sdk):
        sdk.get_calendar.side_effect = self._calendar({
            (2026, 1): {"calendarItems": [
                {"id": 555, "itemType": "workout", "workoutId": 123, "date": "2026-02-21"},
            ]},
        })
        sdk.schedule_workout.side_effect = [Exception("401 Unauthorized"), None]

        result = garmin.reschedule_workout(TEST_USER, "123", date(2026, 2, 23), date(2026, 2, 21))

        assert result.scheduled_date == "2026-02-23"
        sdk.delete_schedule.assert_called_once()
        assert sdk.schedule_workout.call_count == 2

    def test_invalidates_cache(self, garmin, sdk):
        sdk.get_calendar.side_effect = self._calendar({
            (2026, 1): {"calendarItems": [
                {"id": 555, "itemType": "workout", "workoutId": 123, "date": "2026-02-21"},
            ]},
        })
        garmin.fetch_calendar(TEST_USER, 2026, 1)
        garmin.reschedule_workout(TEST_USER, "123", date(2026, 2, 23))
        garmin.fetch_calendar(TEST_USER, 2026, 1)
        # initial read, two reschedule scans, re-read
        assert sdk.get_calendar.call_count == 4


class TestScheduleAndDelete:
    def test_schedule_workout(self, garmin, sdk, garmin_handle):
        result = garmin.schedule_workout(TEST_USER, "77", date(2026, 4, 1))
        assert result.scheduled_date == "2026-04-01"
        sdk.schedule_workout.assert_called_once_with(garmin_handle, "77", date(2026, 4, 1))

    def test_delete(self, garmin, sdk, garmin_handle):
        garmin.delete_workout(TEST_USER, "77")
        sdk.delete_workout.assert_called_once_with(garmin_handle, "77")

    def test_delete_missing_workout(self, garmin, sdk, garmin_login):
        sdk.delete_workout.side_effect = http_error(404)
        with pytest.raises(NotFound):
            garmin.delete_workout(TEST_USER, "77")
        assert garmin_login.call_count == 1

    def test_delete_is_not_retried_on_server_error(self, garmin, sdk, garmin_login):
        sdk.delete_workout.side_effect = http_error(500)
        with pytest.raises(VendorUnavailable):
            garmin.delete_workout(TEST_USER, "77")
        sdk.delete_workout.assert_called_once()
        assert garmin_login.call_count == 1

    def test_delete_is_retried_after_auth_failure(self, garmin, sdk, garmin_login):
        sdk.delete_workout.side_effect = [http_error(401), None]
        garmin.delete_workout(TEST_USER, "77")
        assert sdk.delete_workout.call_count == 2
        assert garmin_login.call_count == 2


class TestDailyStats:
    def _summaries(self, today_steps, yesterday_steps):
        def summary(client, day):
            return {"totalSteps": today_steps if day == date(2026, 2, 20) else yesterday_steps}
        return summary

    def test_all_metrics(self, garmin, sdk):
        sdk.get_user_summary.side_effect = self._summaries(8000, 12000)
        sdk.get_stress_data.return_value = {"avgStressLevel": 31}
        sdk.get_body_battery.return_value = [{"bodyBatteryValuesArray": [[1, 80], [2, 64]]}]

        stats = garmin.fetch_daily_stats(TEST_USER)

        assert stats.to_dict() == {
            "stress_level": 31,
            "body_battery": 64,
            "steps": 8000,
            "steps_yesterday": 12000,
        }

    def test_failing_metric_is_isolated(self, garmin, sdk):
        sdk.get_user_summary.side_effect = self._summaries(8000, 12000)
        sdk.get_stress_data.side_effect = http_error(500)
        sdk.get_body_battery.return_value = [{"charged": 30, "drained": 50}]

        stats = garmin.fetch_daily_stats(TEST_USER)

        assert stats.stress_level is None
        assert stats.body_battery == 80
        assert stats.steps == 8000

    def test_zero_stress_means_no_data(self, garmin, sdk):
        sdk.get_user_summary.return_value = {}
        sdk.get_stress_data.return_value = {"avgStressLevel": 0}
        sdk.get_body_battery.return_value = []
        stats = garmin.fetch_daily_stats(TEST_USER)
        assert stats.stress_level is None
        assert stats.body_battery is None

    def test_cached_per_day(self, garmin, sdk):
        sdk.get_user_summary.return_value = {"totalSteps": 1}
        sdk.get_stress_data.return_value = {}
        sdk.get_body_battery.return_value = []
        garmin.fetch_daily_stats(TEST_USER)
        garmin.fetch_daily_stats(TEST_USER)
        assert sdk.get_stress_data.call_count == 1

    def test_dead_session_reconnects(self, garmin, sdk, garmin_login):
        calls = {"n": 0}

        def summary(client, day):
            calls["n"] += 1
            if calls["n"] <= 2:
                raise http_error(401)
            return {"totalSteps": 500}

        sdk.get_user_summary.side_effect = summary
        sdk.get_stress_data.side_effect = [http_error(401), {"avgStressLevel": 20}]
        sdk.get_body_battery.side_effect = [http_error(401), []]

        stats = garmin.fetch_daily_stats(TEST_USER)

        assert garmin_login.call_count == 2
        assert stats.steps == 500
        assert stats.stress_level == 20


    def test_total_outage_is_an_error(self, garmin, sdk, garmin_login):
        sdk.get_user_summary.side_effect = ConnectionError("network down")
        sdk.get_stress_data.side_effect = ConnectionError("network down")
        sdk.get_body_battery.side_effect = ConnectionError("network down")

        with pytest.raises(VendorUnavailable):
            garmin.fetch_daily_stats(TEST_USER)

        assert garmin_login.call_count == 2
        assert sdk.get_stress_data.call_count == 2

        sdk.get_user_summary.side_effect = None
        sdk.get_user_summary.return_value = {"totalSteps": 42}
        sdk.get_stress_data.side_effect = None
        sdk.get_stress_data.return_value = {}
        sdk.get_body_battery.side_effect = None
        sdk.get_body_battery.return_value = []
        assert garmin.fetch_daily_stats(TEST_USER).steps == 42


class TestBodyBatteryLevel:
    def test_stat_list_wins(self):
        report = [{"charged": 10, "drained": 90, "bodyBatteryStatList": [
            {"bodyBatteryLevel": 40}, {"bodyBatteryLevel": 35},
        ]}]
        assert body_battery_level(report) == 35

    def test_clamped_estimate(self):
        assert body_battery_level([{"charged": 50, "drained": 10}]) == 100
        assert body_battery_level([{"charged": 0, "drained": 150}]) == 0

    def test_dict_report(self):
        assert body_battery_level({"bodyBatteryValuesArray": [[1, 55]]}) == 55

    def test_no_data(self):
        assert body_battery_level([]) is None
        assert body_battery_level([{}]) is None
