import yaml

from conftest import make_delta
from sensor_calibration.bus import DeltaBus


def test_handlers_run_in_registration_order(bus):
    order = []

    def first(delta, forward):
        order.append('first')
        forward(delta)

    def second(delta, forward):
        order.append('second')
        forward(delta)

    bus.register_delta_input_handler(first)
    bus.register_delta_input_handler(second)
    delta = make_delta(('a', 1))
    assert bus.publish(delta) is delta
    assert order == ['first', 'second']


def test_publish_without_handlers_forwards(bus):
    delta = make_delta(('a', 1))
    assert bus.publish(delta) is delta


def test_handler_can_drop_delta(bus):
    seen = []
    bus.register_delta_input_handler(lambda delta, forward: None)
    bus.subscribe(seen.append)
    assert bus.publish(make_delta(('a', 1))) is None
    assert seen == []


def test_handler_can_replace_delta(bus):
    replacement = make_delta(('b', 2))
    bus.register_delta_input_handler(lambda delta, forward: forward(replacement))
    assert bus.publish(make_delta(('a', 1))) is replacement


def test_subscribers_receive_forwarded_deltas(bus):
    seen = []
    unsubscribe = bus.subscribe(seen.append)
    delta = make_delta(('a', 1))
    bus.publish(delta)
    unsubscribe()
    unsubscribe()
    bus.publish(make_delta(('a', 2)))
    assert seen == [delta]


def test_unsubscribe_handler_is_idempotent(bus):
    unsubscribe = bus.register_delta_input_handler(lambda delta, forward: None)
    assert bus.handler_count == 1
    unsubscribe()
    unsubscribe()
    assert bus.handler_count == 0


def test_save_plugin_options_in_memory(bus):
    bus.save_plugin_options({'calibrations': []})
    assert bus.saved_options == {'calibrations': []}


def test_save_plugin_options_to_file(tmp_path):
    path = tmp_path / 'config' / 'calibration.yaml'
    bus = DeltaBus(options_path=path)
    options = {'calibrations': [{'path': 'a', 'mappings': [{'in': 0, 'out': 1}]}]}
    bus.save_plugin_options(options)
    assert yaml.safe_load(path.read_text()) == options
