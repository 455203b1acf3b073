import pytest

from conftest import PRODUCTS, build_context
from voiceshop.classifiers import LocalClassifier
from voiceshop.dispatcher import CapabilityRegistry
from voiceshop.engine import ACTION_FAILED_RESPONSE, CycleState, VoiceCommandEngine
from voiceshop.errors import SpeechRecognitionError
from voiceshop.history import CommandLog
from voiceshop.intents import Intent, IntentResult
from voiceshop.resolver import EntityResolver


class Host:
    """Records every capability call"""

    NAMES = ("navigate_home", "view_cart", "goto_checkout", "browse_products",
             "select_address", "select_card", "submit_order", "add_to_cart")

    def __init__(self):
        self.calls = []
        self.registry = CapabilityRegistry()
        for name in self.NAMES:
            self.registry.register(name, self._recorder(name))

    def _recorder(self, name):
        def record(*args):
            self.calls.append((name,) + args)
        return record


class RecordingOutput:
    def __init__(self):
        self.spoken = []
        self.cancelled = 0

    def speak(self, text, block=True):
        self.spoken.append(text)

    def cancel(self):
        self.cancelled += 1


class ScriptedInput:
    def __init__(self, transcript=None, error=None):
        self.transcript = transcript
        self.error = error
        self.stopped = 0

    def start(self):
        if self.error is not None:
            raise self.error
        return self.transcript

    def stop(self):
        self.stopped += 1


class RaisingClassifier(LocalClassifier):
    def classify(self, text, context, authenticated=False, user_id=None):
        raise RuntimeError("classifier crashed")


def make_engine(context=None, host=None, **kwargs):
    host = host or Host()
    engine = VoiceCommandEngine(
        context=context or build_context(),
        registry=host.registry,
        **kwargs,
    )
    return engine, host


def test_add_first_product_dispatches_product_id():
    engine, host = make_engine()
    result = engine.process_command("add the first product", user_id="u1")

    assert result.intent == Intent.ADD_TO_CART_POSITION
    assert result.dispatched is True
    assert result.capability == "add_to_cart"
    assert result.product.id == "p1"
    assert host.calls == [("add_to_cart", "p1")]
    assert engine.command_log.latest().intent == "add_to_cart_position"
    assert engine.state == CycleState.IDLE


def test_resolution_reads_the_live_product_list():
    replacement = [dict(PRODUCTS[3], id="fresh-1"), dict(PRODUCTS[0], id="fresh-2")]

    class HostUpdatesDuringClassification(LocalClassifier):
        def classify(self, text, context, authenticated=False, user_id=None):
            result = super().classify(text, context, authenticated=authenticated, user_id=user_id)
            context.set_products(replacement)
            return result

    engine, host = make_engine(classifier=HostUpdatesDuringClassification())
    engine.process_command("add the first product", user_id="u1")
    assert host.calls == [("add_to_cart", "fresh-1")]


def test_unauthenticated_add_is_gated_without_mutation():
    context = build_context()
    before = (list(context.products), context.page, context.on_checkout)
    engine, host = make_engine(context=context)

    result = engine.process_command("add the first product to my cart")
    assert result.intent == Intent.AUTH_REQUIRED
    assert result.dispatched is False
    assert host.calls == []
    assert (list(context.products), context.page, context.on_checkout) == before


def test_unresolved_product_is_a_soft_failure():
    engine, host = make_engine()
    result = engine.process_command("add garden hose to my cart", user_id="u1")
    assert result.intent == Intent.ADD_TO_CART_ERROR
    assert "garden hose" in result.response
    assert result.dispatched is False
    assert host.calls == []
    assert engine.command_log.latest().intent == "add_to_cart_error"


def test_name_lookup_uses_the_catalog_once():
    lookups = []

    def catalog(query):
        lookups.append(query)
        return [{"id": "hose-1", "name": "Garden Hose", "price": 30, "rating": 4.2, "category": "home"}]

    engine, host = make_engine(resolver=EntityResolver(catalog))
    engine.process_command("add garden hose to my cart", user_id="u1")
    assert host.calls == [("add_to_cart", "hose-1")]
    assert lookups == ["garden hose"]


def test_missing_capability_keeps_optimistic_response():
    engine = VoiceCommandEngine(context=build_context(), registry=CapabilityRegistry())
    result = engine.process_command("go home")
    assert result.intent == Intent.GO_HOME
    assert result.dispatched is False
    assert result.response != ACTION_FAILED_RESPONSE


def test_confirm_actions_reports_missing_capability():
    engine = VoiceCommandEngine(context=build_context(), registry=CapabilityRegistry(), confirm_actions=True)
    result = engine.process_command("go home")
    assert result.response == ACTION_FAILED_RESPONSE


def test_address_identifier_resolves_to_saved_option():
    engine, host = make_engine(context=build_context(page="checkout", on_checkout=True, with_options=True))
    engine.process_command("use address 2", user_id="u1")
    engine.process_command("use card 1", user_id="u1")
    assert host.calls == [("select_address", "addr-work"), ("select_card", "card-visa")]


def test_identifier_passes_through_without_saved_options():
    engine, host = make_engine()
    engine.process_command("use address 2", user_id="u1")
    assert host.calls == [("select_address", "2")]


def test_unknown_card_is_a_soft_failure():
    engine, host = make_engine(context=build_context(page="checkout", on_checkout=True, with_options=True))
    result = engine.process_command("use card 5", user_id="u1")
    assert result.intent == Intent.CARD_SELECTED
    assert result.dispatched is False
    assert "couldn't find card 5" in result.response
    assert host.calls == []


def test_classifier_crash_becomes_error_result():
    engine, host = make_engine(classifier=RaisingClassifier())
    result = engine.process_command("go home")
    assert result.intent == Intent.ERROR
    assert result.success is False
    assert host.calls == []


def test_handle_utterance_speaks_after_dispatch():
    output = RecordingOutput()
    engine, host = make_engine(speech_output=output)
    result = engine.handle_utterance("show me sneakers")
    assert host.calls == [("browse_products", "shoes")]
    assert output.spoken == [result.response]
    assert engine.state == CycleState.IDLE


def test_listen_and_handle_runs_a_full_cycle():
    output = RecordingOutput()
    engine, host = make_engine(speech_output=output, speech_input=ScriptedInput("go home"))
    result = engine.listen_and_handle()
    assert result.utterance == "go home"
    assert host.calls == [("navigate_home",)]
    assert output.spoken == [result.response]


def test_capture_failure_propagates_and_returns_to_idle():
    engine, host = make_engine(speech_input=ScriptedInput(error=SpeechRecognitionError("No speech recognized")))
    with pytest.raises(SpeechRecognitionError):
        engine.listen_and_handle()
    assert engine.state == CycleState.IDLE
    assert len(engine.command_log) == 0


def test_listen_requires_an_input_channel():
    engine, _ = make_engine()
    with pytest.raises(RuntimeError):
        engine.listen_and_handle()


def test_cancel_stops_both_channels():
    output, speech_input = RecordingOutput(), ScriptedInput("hi")
    engine, _ = make_engine(speech_output=output, speech_input=speech_input)
    engine.cancel()
    assert speech_input.stopped == 1
    assert output.cancelled == 1
    assert engine.state == CycleState.IDLE


def test_log_keeps_last_five_most_recent_first():
    engine, _ = make_engine()
    for text in ["hi", "help", "go home", "show products", "checkout", "view cart"]:
        engine.process_command(text, user_id="u1")
    assert [entry.utterance for entry in engine.command_log.entries()] == [
        "view cart", "checkout", "show products", "go home", "help",
    ]


def test_capabilities_registered_after_construction_are_used():
    registry, log = CapabilityRegistry(), CommandLog(max_entries=2)
    engine = VoiceCommandEngine(context=build_context(), registry=registry, command_log=log)
    visits = []
    registry.register("navigate_home", lambda: visits.append("home"))

    result = engine.process_command("go home")
    assert engine.registry is registry
    assert engine.command_log is log
    assert result.dispatched is True
    assert visits == ["home"]
    assert len(log) == 1


@pytest.mark.parametrize("text", ["i'll take the first one", "i want the second one"])
def test_signed_out_add_without_shopping_words_is_gated(text):
    engine, host = make_engine()
    result = engine.process_command(text)
    assert result.intent == Intent.AUTH_REQUIRED
    assert result.dispatched is False
    assert host.calls == []


@pytest.mark.parametrize("position", ["abc", None])
def test_malformed_position_becomes_error_result(position):
    class BadParams(LocalClassifier):
        def classify(self, text, context, authenticated=False, user_id=None):
            return IntentResult(Intent.ADD_TO_CART_POSITION, "Adding it!", {"position": position})

    engine, host = make_engine(classifier=BadParams())
    result = engine.process_command("add the first product", user_id="u1")
    assert result.intent == Intent.ERROR
    assert result.dispatched is False
    assert host.calls == []
    assert engine.command_log.latest().intent == "error"


def test_card_named_by_brand_resolves_to_saved_option():
    engine, host = make_engine(context=build_context(page="checkout", on_checkout=True, with_options=True))
    engine.process_command("pay with mastercard", user_id="u1")
    assert host.calls == [("select_card", "card-mc")]
