"""
    Copyright 2024 Inmanta

    Licensed under the Apache License, Version 2.0 (the "License");
    you may not use this file except in compliance with the License.
    You may obtain a copy of the License at

        http://www.apache.org/licenses/LICENSE-2.0

    Unless required by applicable law or agreed to in writing, software
    distributed under the License is distributed on an "AS IS" BASIS,
    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
    See the License for the specific language governing permissions and
    limitations under the License.

    Contact: code@inmanta.com
"""

import abc
import io
import json
import logging
import threading
import uuid
from collections.abc import Mapping
from typing import Optional, Union

from tornado.httpclient import HTTPClient, HTTPClientError, HTTPRequest, HTTPResponse
from tornado.httputil import url_concat

from bml import const
from bml.config import ClientConfig
from bml.const import HttpMethod, Operation
from bml.exceptions import TransportError
from bml.protocol.actions import Action, NamedStream
from bml.protocol.results import BmlResult, DownloadResult, DownloadShareResult, decode_result

LOGGER: logging.Logger = logging.getLogger(__name__)

CONTENT_TYPE = "Content-Type"
JSON_CONTENT = "application/json"
OCTET_STREAM_CONTENT = "application/octet-stream"
UTF8_ENCODING = "UTF-8"


class Transport(abc.ABC):
    """
    Delivers actions to the BML server. Implementations decide on connection handling, authentication and timeouts,
    the client only relies on execute and close.
    """

    @abc.abstractmethod
    def execute(self, action: Action) -> BmlResult:
        """
        Send the action to the server and return its result

        :raises TransportError: the request could not be delivered or the answer could not be read
        """

    @abc.abstractmethod
    def close(self) -> None:
        """
        Release the connections held by this transport
        """

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def encode_multipart(boundary: str, fields: Mapping[str, str], streams: Mapping[str, NamedStream]) -> bytes:
    """
    Encode form fields and file streams as a multipart/form-data body
    """
    body = io.BytesIO()
    for name, value in fields.items():
        body.write(b"--%s\r\n" % boundary.encode())
        body.write(b'Content-Disposition: form-data; name="%s"\r\n\r\n' % _quote(name))
        body.write(str(value).encode(UTF8_ENCODING))
        body.write(b"\r\n")

    for name, named_stream in streams.items():
        body.write(b"--%s\r\n" % boundary.encode())
        body.write(
            b'Content-Disposition: form-data; name="%s"; filename="%s"\r\n' % (_quote(name), _quote(named_stream.file_name))
        )
        body.write(b"%s: %s\r\n\r\n" % (CONTENT_TYPE.encode(), OCTET_STREAM_CONTENT.encode()))
        while True:
            chunk = named_stream.stream.read(const.COPY_BUFFER_SIZE)
            if not chunk:
                break
            body.write(chunk)
        body.write(b"\r\n")

    body.write(b"--%s--\r\n" % boundary.encode())
    return body.getvalue()


def _quote(value: str) -> bytes:
    return value.replace("\\", "\\\\").replace('"', '\\"').encode(UTF8_ENCODING)


class HttpTransport(Transport):
    """
    A transport that talks to the gateway of the BML server over http, using a token to authenticate. Requests are never
    retried.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._client: Optional[HTTPClient] = None
        self._closed = False
        # the tornado client is not thread safe, so calls are sent one at a time and max_clients only sizes its pool
        self._lock = threading.Lock()
        LOGGER.debug("Start transport for client %s to %s", config.client_name, config.server_url)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _get_client(self) -> HTTPClient:
        if self._closed:
            raise TransportError(599, "the transport of %s is closed" % self._config.client_name)
        if self._client is None:
            self._client = HTTPClient(max_clients=self._config.max_connection_size)
        return self._client

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
            self._closed = True

    def build_request(self, action: Action) -> HTTPRequest:
        """
        Translate an action to an http request
        """
        url = self._config.server_url + action.get_url(self._config.dws_version)
        headers = {self._config.auth_token_key: self._config.auth_token_value}
        if action.user:
            headers[const.TOKEN_USER_HEADER] = action.user

        body: Optional[Union[str, bytes]] = None
        route = action.route
        if route.method is HttpMethod.GET:
            if action.parameters:
                url = url_concat(url, dict(action.parameters))
        elif route.multipart:
            boundary = uuid.uuid4().hex
            headers[CONTENT_TYPE] = "multipart/form-data; boundary=%s" % boundary
            fields = dict(action.parameters)
            fields.update({k: v for k, v in action.payloads.items() if v is not None})
            body = encode_multipart(boundary, fields, action.streams)
        else:
            headers[CONTENT_TYPE] = JSON_CONTENT
            values = dict(action.parameters)
            values.update(action.payloads)
            body = json.dumps(values)

        return HTTPRequest(
            url=url,
            method=route.method.value,
            headers=headers,
            body=body,
            connect_timeout=self._config.connection_timeout,
            request_timeout=self._config.read_timeout,
            follow_redirects=False,
            decompress_response=True,
        )

    def execute(self, action: Action) -> BmlResult:
        request = self.build_request(action)
        LOGGER.debug("Calling server %s %s as user %s", action.operation.value, request.url, action.user)

        with self._lock:
            client = self._get_client()
            try:
                response = client.fetch(request, raise_error=False)
            except HTTPClientError as e:
                LOGGER.error("Failed to send request %s: %s", action.operation.value, e)
                raise TransportError(e.code, str(e))
            except OSError as e:
                LOGGER.error("Failed to send request %s: %s", action.operation.value, e)
                raise TransportError(599, str(e))

        return self._decode_response(action, response)

    def _decode_response(self, action: Action, response: HTTPResponse) -> BmlResult:
        content_type = response.headers.get(CONTENT_TYPE, "")
        LOGGER.debug("Got response code %d with content type %s for %s", response.code, content_type, action.operation.value)

        if content_type.startswith(JSON_CONTENT):
            try:
                body = json.loads(response.body.decode(UTF8_ENCODING))
            except ValueError:
                raise TransportError(response.code, "the server answered with an invalid json document")
            if response.code != 200 and not (isinstance(body, dict) and "status" in body):
                # an error of the gateway in front of the server
                raise TransportError(response.code, response.reason)
            return decode_result(body, response.code)

        if response.code != 200:
            raise TransportError(response.code, response.reason)

        if action.operation is Operation.download:
            result_cls = DownloadResult
        elif action.operation is Operation.download_share_resource:
            result_cls = DownloadShareResult
        else:
            raise TransportError(response.code, "unexpected content type %s for %s" % (content_type, action.operation.value))

        stream = response.buffer if response.buffer is not None else io.BytesIO()
        return result_cls(
            method=action.get_url(self._config.dws_version),
            status=const.STATUS_SUCCESS,
            status_code=response.code,
            stream=stream,
            response=response,
        )
