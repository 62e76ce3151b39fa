from decimal import Decimal

from django.test import SimpleTestCase
from django.utils import translation

from shared.event_bus import EventBus
from shared.numbers import parse_amount, parse_number


class ParseNumberTests(SimpleTestCase):
    def test_plain_and_grouped_input(self):
        self.assertEqual(parse_number("3.5"), Decimal("3.5"))
        self.assertEqual(parse_number("1,234.50"), Decimal("1234.50"))
        self.assertEqual(parse_number(" 7 "), Decimal("7"))
        self.assertEqual(parse_number(2), Decimal("2"))
        self.assertEqual(parse_number(Decimal("4.25")), Decimal("4.25"))

    def test_malformed_input_is_zero(self):
        for value in ("abc", "", None, "1.2.3x", "NaN", "Infinity", True, [1]):
            with self.subTest(value=value):
                self.assertEqual(parse_number(value), Decimal("0"))

    def test_german_locale(self):
        with translation.override("de"):
            self.assertEqual(parse_number("1.234,5"), Decimal("1234.5"))
            self.assertEqual(parse_number("0,75"), Decimal("0.75"))


class ParseAmountTests(SimpleTestCase):
    def test_amount(self):
        self.assertEqual(parse_amount("100.00"), Decimal("100.00"))
        self.assertEqual(parse_amount("-12.5"), Decimal("-12.5"))

    def test_blank_or_malformed_amount_is_none(self):
        for value in ("", "   ", None, "ten"):
            with self.subTest(value=value):
                self.assertIsNone(parse_amount(value))


class EventBusTests(SimpleTestCase):
    def test_publish_reaches_subscribers(self):
        bus = EventBus()
        received = []

        def handler(sender, **kwargs):
            received.append(kwargs["value"])
            return "done"

        bus.subscribe("thing.happened", handler, dispatch_uid="tests.handler")
        results = bus.publish("thing.happened", value=3)

        self.assertEqual(received, [3])
        self.assertEqual([result for _, result in results], ["done"])

    def test_duplicate_subscription_is_ignored(self):
        bus = EventBus()
        received = []

        def handler(sender, **kwargs):
            received.append(1)

        bus.subscribe("thing.happened", handler, dispatch_uid="tests.handler")
        bus.subscribe("thing.happened", handler, dispatch_uid="tests.handler")
        bus.publish("thing.happened")
        self.assertEqual(received, [1])

    def test_unsubscribe(self):
        bus = EventBus()

        def handler(sender, **kwargs):
            raise AssertionError("should not run")

        bus.subscribe("thing.happened", handler, dispatch_uid="tests.handler")
        self.assertTrue(bus.unsubscribe("thing.happened", dispatch_uid="tests.handler"))
        self.assertEqual(bus.publish("thing.happened"), [])
        self.assertFalse(bus.unsubscribe("never.registered"))

    def test_handler_errors_propagate(self):
        bus = EventBus()

        def handler(sender, **kwargs):
            raise RuntimeError("boom")

        bus.subscribe("thing.happened", handler)
        with self.assertRaises(RuntimeError):
            bus.publish("thing.happened")
