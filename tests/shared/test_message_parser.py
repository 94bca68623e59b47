import pytest

from fsgate.protocol.base import INVALID_PARAMS, INVALID_REQUEST, Error, ServiceRequest
from fsgate.shared.message_parser import MessageParser


class TestMessageClassification:
    def setup_method(self):
        self.parser = MessageParser()

    def test_request_is_valid_request(self):
        # Arrange
        payload = {"jsonrpc": "2.0", "id": 1, "method": "FileSystem.readFileAsString"}

        # Assert
        assert self.parser.is_valid_request(payload)
        assert not self.parser.is_valid_notification(payload)
        assert not self.parser.is_valid_response(payload)

    def test_notification_has_no_id(self):
        # Arrange
        payload = {"jsonrpc": "2.0", "method": "notifications/cancelled"}

        # Assert
        assert self.parser.is_valid_notification(payload)
        assert not self.parser.is_valid_request(payload)
        assert not self.parser.expects_response(payload)

    def test_response_is_not_a_request(self):
        # Arrange
        payload = {"jsonrpc": "2.0", "id": 1, "result": {}}

        # Assert
        assert self.parser.is_valid_response(payload)
        assert not self.parser.is_valid_request(payload)
        assert not self.parser.expects_response(payload)

    @pytest.mark.parametrize("bad_id", [True, 1.5, None, ["x"]])
    def test_request_with_bad_id_is_invalid_but_still_expects_response(self, bad_id):
        # Arrange
        payload = {"jsonrpc": "2.0", "id": bad_id, "method": "x"}

        # Assert
        assert not self.parser.is_valid_request(payload)
        assert self.parser.expects_response(payload)

    def test_wrong_jsonrpc_version_is_invalid(self):
        # Arrange
        payload = {"jsonrpc": "1.0", "id": 1, "method": "x"}

        # Assert
        assert not self.parser.is_valid_request(payload)
        assert self.parser.expects_response(payload)


class TestParseRequest:
    def setup_method(self):
        self.parser = MessageParser()

    def test_parses_named_params(self):
        # Arrange
        payload = {
            "jsonrpc": "2.0",
            "id": "req-1",
            "method": "FileSystem.readFileAsString",
            "params": {"uri": "file:///tmp/a.txt"},
        }

        # Act
        request = self.parser.parse_request(payload)

        # Assert
        assert isinstance(request, ServiceRequest)
        assert request.method == "FileSystem.readFileAsString"
        assert request.params == {"uri": "file:///tmp/a.txt"}

    def test_missing_params_become_empty(self):
        # Act
        request = self.parser.parse_request(
            {"jsonrpc": "2.0", "id": 1, "method": "FileSystem.getIDEWorkspaceRoots"}
        )

        # Assert
        assert isinstance(request, ServiceRequest)
        assert request.params == {}

    def test_positional_params_are_rejected(self):
        # Act
        result = self.parser.parse_request(
            {"jsonrpc": "2.0", "id": 1, "method": "x", "params": ["a", "b"]}
        )

        # Assert
        assert isinstance(result, Error)
        assert result.code == INVALID_PARAMS

    def test_invalid_envelope_returns_invalid_request(self):
        # Act
        result = self.parser.parse_request({"jsonrpc": "2.0", "id": 1, "method": 5})

        # Assert
        assert isinstance(result, Error)
        assert result.code == INVALID_REQUEST
