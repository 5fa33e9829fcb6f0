"""
Unit tests for the outbound dispatcher.
"""

from services.realtime.dispatcher import OutboundDispatcher
from services.realtime.event_log import EventLog
from services.realtime.message_queue import MessageQueue


class TestOutboundDispatcher:
    """Tests for OutboundDispatcher."""

    def test_queues_without_channel(self):
        queue, log = MessageQueue(), EventLog()
        dispatcher = OutboundDispatcher(queue, log)
        message = {"type": "response.create"}

        assert dispatcher.send(message) is False
        assert len(queue) == 1
        assert len(log) == 0
        assert "event_id" not in message
        assert "timestamp" not in message

    def test_send_assigns_event_id_and_logs(self, components):
        message = {"type": "response.create"}
        assert components.dispatcher.send(message) is True

        wire = components.channel.sent[0]
        assert wire["event_id"] == message["event_id"]
        assert "timestamp" not in wire
        assert message["timestamp"]
        assert components.log.entries[0] is message

    def test_send_keeps_existing_event_id_and_strips_timestamp(self, components):
        message = {"type": "response.create", "event_id": "evt_1", "timestamp": "10:00:00"}
        components.dispatcher.send(message)

        assert components.channel.sent == [{"type": "response.create", "event_id": "evt_1"}]
        assert message["timestamp"] == "10:00:00"

    def test_send_text_message_sends_item_then_response(self, components):
        components.dispatcher.send_text_message("hello")

        sent = components.channel.sent
        assert [m["type"] for m in sent] == ["conversation.item.create", "response.create"]
        assert sent[0]["item"]["role"] == "user"
        assert sent[0]["item"]["content"] == [{"type": "input_text", "text": "hello"}]

    def test_generation_changes_on_attach_and_detach(self, fake_channel_cls):
        dispatcher = OutboundDispatcher(MessageQueue(), EventLog())
        first = dispatcher.attach(fake_channel_cls())
        assert dispatcher.is_current(first)
        dispatcher.detach()
        assert not dispatcher.is_current(first)
        assert dispatcher.is_open is False
