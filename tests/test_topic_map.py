"""Unit tests for topic constants and NATS subject conversion."""

from gemtrader import Topics, from_nats_subject, to_nats_subject


class TestSubjects:
    def test_to_subject(self):
        assert to_nats_subject(Topics.NEW_OFFER) == "events.offers.new"

    def test_from_subject(self):
        assert from_nats_subject("platform.inventory") == Topics.INVENTORY

    def test_all_topics_round_trip(self):
        for topic in Topics.all_topics():
            assert from_nats_subject(to_nats_subject(topic)) == topic


class TestTopicGroups:
    def test_events_live_under_events_prefix(self):
        assert all(t.startswith("/events/") for t in Topics.events())

    def test_requests_are_not_events(self):
        events = set(Topics.events())
        requests = [t for t in Topics.all_topics() if t not in events]
        assert requests
        assert all(t.startswith("/platform/") for t in requests)
