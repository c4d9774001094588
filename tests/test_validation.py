import unittest

import pytest

from tokenbind import Container, Provider


class TestProviderValidation(unittest.TestCase):
    cont: Container

    class Service: ...

    def setUp(self):
        self.cont = Container()

    def test_register_without_strategy_raises_value_error(self):
        with pytest.raises(ValueError):
            self.cont.register([Provider("a")])

    def test_register_with_two_strategies_raises_value_error(self):
        with pytest.raises(ValueError):
            self.cont.register([Provider("a", use_class=self.Service, use_value=1)])

    def test_register_use_class_with_non_class_raises_type_error(self):
        with pytest.raises(TypeError):
            self.cont.register([Provider("a", use_class=self.Service())])

    def test_register_non_callable_factory_raises_type_error(self):
        with pytest.raises(TypeError):
            self.cont.register([Provider("a", use_factory="not callable")])

        with pytest.raises(TypeError):
            self.cont.register([Provider("a", use_factory_with_container=42)])

    def test_register_params_with_use_value_raises_value_error(self):
        with pytest.raises(ValueError):
            self.cont.register([Provider("a", use_value=1, params=["b"])])

    def test_register_params_with_use_factory_with_container_raises_value_error(self):
        with pytest.raises(ValueError):
            self.cont.register([Provider("a", use_factory_with_container=lambda c: None, params=["b"])])

    def test_params_as_bare_string_raises_value_error(self):
        with pytest.raises(ValueError):
            Provider("a", use_class=self.Service, params="b")

    def test_unknown_scope_raises_value_error(self):
        with pytest.raises(ValueError):
            self.cont.register([Provider("a", use_class=self.Service, scope="Request")])

    def test_invalid_batch_registers_nothing(self):
        with pytest.raises(ValueError):
            self.cont.register(
                [
                    Provider("ok", use_class=self.Service),
                    Provider("bad"),
                ]
            )

        assert self.cont.list() == []
        assert "ok" not in self.cont


class TestMappingDescriptors(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_unknown_key_raises_value_error(self):
        with pytest.raises(ValueError):
            self.cont.register([{"token": "a", "useValue": 1}])

    def test_missing_token_raises_value_error(self):
        with pytest.raises(ValueError):
            self.cont.register([{"use_value": 1}])

    def test_non_descriptor_raises_type_error(self):
        with pytest.raises(TypeError):
            self.cont.register([("a", 1)])

    def test_mapping_params_list_is_accepted(self):
        class A:
            def __init__(self, x, y):
                self.x = x
                self.y = y

        descriptor = {"token": "a", "use_class": A, "params": ["x", "y"]}
        self.cont.register([descriptor, {"token": "x", "use_value": 1}, {"token": "y", "use_value": 2}])

        a = self.cont.resolve("a")
        assert (a.x, a.y) == (1, 2)
        assert self.cont.list()[0] is descriptor

    def test_mapping_params_none_means_no_params(self):
        self.cont.register([{"token": "a", "use_factory": lambda: "built", "params": None}])

        assert self.cont.resolve("a") == "built"
