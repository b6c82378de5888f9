"""
Tests for the host lifecycle plugin.
"""

import requests

from marktrace.instrument.wrapper import WrapTarget, is_wrapped_callable
from marktrace.integrations import redis
from marktrace.plugin import TracePlugin
from marktrace.timeline import Timeline


class TestTracePlugin:
    def test_pre_invoke_returns_mark_api(self, timeline, data):
        plugin = TracePlugin({"auto_http": {"enabled": False}})

        mark = plugin.pre_invoke(timeline, data)
        mark.start("handler")
        mark.end("handler")

        assert [e.name for e in timeline.get_entries()] == ["start:handler", "end:handler"]

    def test_incompatible_timeline_disables_tracing(self, data):
        plugin = TracePlugin()

        assert plugin.pre_invoke([], data) is None
        assert plugin.engines == []
        assert not is_wrapped_callable(requests.Session.__dict__["request"])

    def test_auto_http_wraps_and_post_invoke_restores(self, timeline, data):
        original = requests.Session.__dict__["request"]
        plugin = TracePlugin()

        plugin.pre_invoke(timeline, data)
        try:
            assert is_wrapped_callable(requests.Session.__dict__["request"])
        finally:
            plugin.post_invoke()

        assert requests.Session.__dict__["request"] is original

    def test_post_invoke_twice_is_safe(self, timeline, data):
        plugin = TracePlugin()
        plugin.pre_invoke(timeline, data)

        plugin.post_invoke()
        plugin.post_invoke()

        assert not is_wrapped_callable(requests.Session.__dict__["request"])

    def test_pre_report_adds_entries_and_auto_measures(self, timeline, data):
        plugin = TracePlugin({"auto_http": {"enabled": False}})
        mark = plugin.pre_invoke(timeline, data)
        with mark.span("handler"):
            pass
        plugin.post_invoke()

        report = plugin.pre_report({"duration": 12})

        names = [e["name"] for e in report["performanceEntries"]]
        assert names == ["start:handler", "end:handler", "measure:handler"]
        assert report["performanceEntries"][2]["entryType"] == "measure"
        assert report["traceEntries"] == {}
        assert report["duration"] == 12

    def test_auto_measure_disabled(self, timeline, data):
        plugin = TracePlugin({"auto_http": {"enabled": False}, "auto_measure": False})
        mark = plugin.pre_invoke(timeline, data)
        with mark.span("handler"):
            pass

        report = plugin.pre_report({})

        assert [e["entryType"] for e in report["performanceEntries"]] == ["mark", "mark"]

    def test_extra_targets_with_filter(self, redis_cls, timeline, data):
        plugin = TracePlugin({"auto_http": {"enabled": False}})
        plugin.pre_invoke(timeline, data)

        assert plugin.wrap(
            redis.targets(redis_cls),
            record_filter=lambda record: record if record["name"] != "get" else None,
        )
        client = redis_cls()
        client.set("k", "v")
        client.get("k")
        plugin.post_invoke()

        report = plugin.pre_report({})
        assert [r["name"] for r in report["traceEntries"].values()] == ["set"]
        # two calls: four marks plus two auto measures
        assert len(report["performanceEntries"]) == 6

    def test_in_flight_call_is_left_out_of_report(self, timeline, data):
        pending = []

        class Queue:
            def send(self, key, callback):
                pending.append(callback)

        plugin = TracePlugin({"auto_http": {"enabled": False}})
        plugin.pre_invoke(timeline, data)
        plugin.wrap([WrapTarget(Queue, "send", "queue")], record_filter=lambda record: False)

        Queue().send("k", lambda err, res: None)
        plugin.post_invoke()

        assert plugin.pre_report({})["traceEntries"] == {}

        # completing later still goes through the filter
        pending[0](None, "ok")
        assert plugin.pre_report({})["traceEntries"] == {}
        assert data == {}

    def test_late_completion_is_reported_once_done(self, timeline, data):
        pending = []

        class Queue:
            def send(self, key, callback):
                pending.append(callback)

        plugin = TracePlugin({"auto_http": {"enabled": False}})
        plugin.pre_invoke(timeline, data)
        plugin.wrap([WrapTarget(Queue, "send", "queue")])

        Queue().send("k", lambda err, res: None)
        assert plugin.pre_report({})["traceEntries"] == {}

        pending[0](None, "ok")
        [record] = plugin.pre_report({})["traceEntries"].values()
        assert record["name"] == "send"
        assert record["response"] == {"type": "str"}
        plugin.post_invoke()

    def test_wrap_before_pre_invoke(self, redis_cls):
        assert TracePlugin().wrap(redis.targets(redis_cls)) is False

    def test_fresh_timeline_per_invocation(self, data):
        plugin = TracePlugin({"auto_http": {"enabled": False}})
        first, second = Timeline(), Timeline()

        plugin.pre_invoke(first, {}).start("one")
        plugin.post_invoke()
        plugin.pre_invoke(second, {}).start("two")
        plugin.post_invoke()

        assert [e.name for e in first.get_entries()] == ["start:one"]
        assert [e.name for e in second.get_entries()] == ["start:two"]

    def test_pre_report_without_invocation(self):
        assert TracePlugin().pre_report({"a": 1}) == {"a": 1}
