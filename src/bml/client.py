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

import contextlib
import logging
import shutil
from collections import abc
from typing import BinaryIO, Iterator, Optional, Sequence, Type, TypeVar

from bml import const
from bml.config import ClientConfig, client_options
from bml.const import Operation
from bml.exceptions import InvalidArgument, NotImplementedOperation, ProtocolMismatchError, StreamCopyError
from bml.fs import FileSystem, FsPath, get_fs_by_proxy_user
from bml.protocol import outcome, responses, results
from bml.protocol.actions import Action, ActionBuilder
from bml.protocol.transport import HttpTransport, Transport
from bml.version import is_newer, is_valid

LOGGER: logging.Logger = logging.getLogger(__name__)

T = TypeVar("T", bound=responses.BmlResponse)


def path_to_name(file_path: str) -> str:
    """
    The name a file is declared with when it is uploaded
    """
    return FsPath(file_path).name


def is_update_version(tag: Optional[str]) -> bool:
    """
    An update never produces the first version of a resource
    """
    return is_valid(tag) and is_newer(tag, const.FIRST_VERSION)


class BmlClient(object):
    """
    A client for the BML server. Every operation does a single call to the server and is never retried.

    A response with is_success set to False means the server refused the operation. Failures to reach the server, answers
    that do not belong to the operation and failures to write downloaded content are raised as exceptions.

    :param server_url: The url of the gateway of the BML server. When not set, the bml_client.server_url option is used.
    :param properties: Client properties that take precedence over the configuration files, keyed on the short name of the
        options (``max.connection.size``, ``auth.token.value``, ...).
    :param transport: The transport to send calls with. When set, the server url and properties are not used to create a
        transport.
    :param user: The user this client acts as for operations that do not take a user.
    :raises ConfigurationError: No transport is given and no server url is configured.
    """

    def __init__(
        self,
        server_url: Optional[str] = None,
        properties: Optional[abc.Mapping[str, object]] = None,
        *,
        transport: Optional[Transport] = None,
        user: Optional[str] = None,
    ) -> None:
        if properties is None:
            properties = {}

        if transport is None:
            transport = HttpTransport(ClientConfig.load(server_url, properties))

        self._transport = transport
        self._user = user if user is not None else client_options.user.from_properties(properties)

    @property
    def user(self) -> str:
        return self._user

    @property
    def transport(self) -> Transport:
        return self._transport

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "BmlClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _call(self, action: Action, expected: Type[results.BmlResult], response_type: Type[T]) -> T:
        result = self._transport.execute(action)
        return outcome.map_outcome(result, expected, response_type, action.user)

    @contextlib.contextmanager
    def _open_input(self, user: str, file_path: str, input_stream: Optional[BinaryIO]) -> Iterator[BinaryIO]:
        """
        Provide the content to upload. A stream passed by the caller stays open, a stream opened from the file path is
        closed when the upload is done.
        """
        if input_stream is not None:
            yield input_stream
            return

        fs_path = FsPath(file_path)
        with get_fs_by_proxy_user(fs_path, user) as fs:
            fs.init()
            try:
                stream = fs.read(fs_path)
            except OSError as e:
                raise InvalidArgument("Unable to open %s as user %s: %s" % (file_path, user, e)) from e
            with stream:
                yield stream

    # Resources
    def upload_resource(self, user: str, file_path: str, input_stream: Optional[BinaryIO] = None) -> responses.UploadResponse:
        """
        Upload a new resource

        :param user: The user that will own the resource
        :param file_path: The path of the content. Its base name is the name the resource is declared with.
        :param input_stream: The content to upload. When not set, the content is read from file_path as user.
        :return: The id of the new resource and its first version
        """
        with self._open_input(user, file_path, input_stream) as stream:
            action = (
                ActionBuilder(Operation.upload)
                .user(user)
                .stream(const.FILE_STREAM_NAME, path_to_name(file_path), stream)
                .build()
            )
            response = self._call(action, results.UploadResult, responses.UploadResponse)

        if response.is_success and response.version != const.FIRST_VERSION:
            LOGGER.warning(
                "Upload of %s by user %s returned version %s instead of %s",
                file_path,
                user,
                response.version,
                const.FIRST_VERSION,
            )
        return response

    def update_resource(
        self, user: str, resource_id: str, file_path: str, input_stream: Optional[BinaryIO] = None
    ) -> responses.UpdateResponse:
        """
        Add a new version to an existing resource

        :return: The resource id and the new version, which is newer than all existing versions of the resource
        """
        if not resource_id:
            raise InvalidArgument("resourceId cannot be empty")

        with self._open_input(user, file_path, input_stream) as stream:
            action = (
                ActionBuilder(Operation.update)
                .user(user)
                .parameter("resourceId", resource_id)
                .stream(const.FILE_STREAM_NAME, path_to_name(file_path), stream)
                .build()
            )
            response = self._call(action, results.UpdateResult, responses.UpdateResponse)

        if response.is_success and not is_update_version(response.version):
            LOGGER.warning(
                "Update of %s by user %s returned version %s, expected a version after %s",
                resource_id,
                user,
                response.version,
                const.FIRST_VERSION,
            )
        return response

    def _download_action(self, operation: Operation, user: str, resource_id: str, version: Optional[str]) -> Action:
        # an empty version is not sent, the server then resolves the latest version
        return ActionBuilder(operation).user(user).parameter("resourceId", resource_id).parameter("version", version).build()

    def download_resource(
        self,
        user: str,
        resource_id: str,
        version: Optional[str] = None,
        path: Optional[str] = None,
        overwrite: bool = False,
    ) -> responses.DownloadResponse:
        """
        Download a version of a resource

        :param version: The version to download, the latest version when not set
        :param path: Where to write the content, prefixed with the scheme of its file system (``local://``, ...). The file
            is written as user. When not set, the response holds an open stream on the content that the caller must close.
        :param overwrite: Replace the file at path when it exists. When false and the file exists, the download fails.
        :raises StreamCopyError: The content could not be written to path
        """
        action = self._download_action(Operation.download, user, resource_id, version)
        if path is None:
            return self._download_stream(action, results.DownloadResult, resource_id, version)
        return self._download_to_path(action, results.DownloadResult, resource_id, version, path, overwrite)

    def _download_stream(
        self, action: Action, expected: Type[results.StreamResult], resource_id: str, version: Optional[str]
    ) -> responses.DownloadResponse:
        result = self._transport.execute(action)
        try:
            response = outcome.map_outcome(result, expected, responses.DownloadResponse, action.user)
        except ProtocolMismatchError:
            # the stream of a mismatched result is never handed to the caller
            self._discard_stream(result)
            raise
        if not response.is_success:
            return response
        return response.model_copy(update={"resource_id": resource_id, "version": version})

    def _download_to_path(
        self,
        action: Action,
        expected: Type[results.StreamResult],
        resource_id: str,
        version: Optional[str],
        path: str,
        overwrite: bool,
    ) -> responses.DownloadResponse:
        fs_path = FsPath(path)
        fs = get_fs_by_proxy_user(fs_path, action.user)
        input_stream: Optional[BinaryIO] = None
        output_stream: Optional[BinaryIO] = None
        failed = True
        try:
            fs.init()
            result = self._transport.execute(action)
            input_stream = getattr(result, "stream", None)
            response = outcome.map_outcome(result, expected, responses.DownloadResponse, action.user)
            if response.is_success:
                output_stream = fs.write(fs_path, overwrite)
                shutil.copyfileobj(input_stream, output_stream, const.COPY_BUFFER_SIZE)
                self._close_response(result)
                response = responses.DownloadResponse(
                    is_success=True, status=result.status, resource_id=resource_id, version=version, full_file_name=path
                )
            failed = False
        except OSError as e:
            LOGGER.exception("failed to copy inputStream and outputStream")
            raise StreamCopyError("%s to %s" % (resource_id, path)) from e
        except Exception:
            LOGGER.exception("failed to copy stream")
            raise
        finally:
            self._release(input_stream, output_stream, fs, quietly=failed)

        return response

    def _discard_stream(self, result: object) -> None:
        stream = getattr(result, "stream", None)
        if stream is None:
            return
        try:
            stream.close()
        except Exception:
            LOGGER.warning("Failed to close the stream of a discarded download", exc_info=True)

    def _close_response(self, result: results.StreamResult) -> None:
        close = getattr(result.response, "close", None)
        if not callable(close):
            LOGGER.debug("Download response : %s cannot close.", type(result.response).__name__)
            return
        try:
            close()
        except Exception:
            LOGGER.warning("Failed to close the download response", exc_info=True)

    def _release(
        self, input_stream: Optional[BinaryIO], output_stream: Optional[BinaryIO], fs: FileSystem, quietly: bool
    ) -> None:
        """
        Close the input stream, the output stream and the file system, in that order. Every close is attempted.

        :param quietly: Only log failures to close. Used when the download already failed, so the original error is
            raised instead.
        :raises StreamCopyError: when not quietly and a close failed
        """
        error: Optional[Exception] = None
        for name, closeable in (("input stream", input_stream), ("output stream", output_stream), ("file system", fs)):
            if closeable is None:
                continue
            try:
                closeable.close()
            except Exception as e:
                LOGGER.warning("Failed to close the %s: %s", name, e)
                if error is None:
                    error = e

        if error is not None and not quietly:
            raise StreamCopyError("failed to release the download streams") from error

    def get_versions(self, user: str, resource_id: str) -> responses.VersionsResponse:
        """
        Get all versions of a resource, oldest first
        """
        action = ActionBuilder(Operation.get_versions).user(user).parameter("resourceId", resource_id).build()
        return self._call(action, results.VersionsResult, responses.VersionsResponse)

    def delete_resource(self, user: str, resource_id: str, version: Optional[str] = None) -> responses.DeleteResponse:
        """
        Delete a resource with all its versions. Deleting a single version is not supported yet.
        """
        if version is not None:
            raise NotImplementedOperation("deleteResource of a single version")

        action = ActionBuilder(Operation.delete_resource).user(user).parameter("resourceId", resource_id).build()
        return self._call(action, results.DeleteResult, responses.DeleteResponse)

    def rollback_version(self, resource_id: str, version: str, user: str) -> responses.RollbackVersionResponse:
        """
        Create a new version of the resource with the content of the given version. No versions are removed.

        :return: The resource id and the newly created version
        """
        action = (
            ActionBuilder(Operation.rollback_version)
            .user(user)
            .payload("resourceId", resource_id)
            .payload("version", version)
            .build()
        )
        return self._call(action, results.RollbackVersionResult, responses.RollbackVersionResponse)

    def change_owner_by_resource_id(self, resource_id: str, old_owner: str, new_owner: str) -> responses.ChangeOwnerResponse:
        action = (
            ActionBuilder(Operation.change_owner)
            .user(old_owner)
            .payload("resourceId", resource_id)
            .payload("oldOwner", old_owner)
            .payload("newOwner", new_owner)
            .build()
        )
        return self._call(action, results.ChangeOwnerResult, responses.ChangeOwnerResponse)

    def copy_resource_to_another_user(
        self, resource_id: str, another_user: str, origin_owner: str
    ) -> responses.CopyResourceResponse:
        """
        Copy the content of a resource into a new resource owned by another user. The copy has its own versions.

        :return: The id of the new resource
        """
        action = (
            ActionBuilder(Operation.copy_resource)
            .user(origin_owner)
            .payload("resourceId", resource_id)
            .payload("anotherUser", another_user)
            .build()
        )
        return self._call(action, results.CopyResourceResult, responses.CopyResourceResponse)

    def relate_resource(self, resource_id: str, target_file_path: str) -> responses.BmlResponse:
        raise NotImplementedOperation("relateResource")

    def get_resource_info(self, resource_id: str) -> responses.BmlResponse:
        raise NotImplementedOperation("getResourceInfo")

    # Projects
    def create_bml_project(
        self, creator: str, project_name: str, access_users: Sequence[str], edit_users: Sequence[str]
    ) -> responses.CreateProjectResponse:
        action = (
            ActionBuilder(Operation.create_project)
            .user(creator)
            .payload("projectName", project_name)
            .payload("editUsers", edit_users)
            .payload("accessUsers", access_users)
            .build()
        )
        return self._call(action, results.CreateProjectResult, responses.CreateProjectResponse)

    def attach_resource_and_project(self, project_name: str, resource_id: str) -> responses.AttachResourceAndProjectResponse:
        """
        Attach an existing resource to a project, as the user of this client
        """
        action = (
            ActionBuilder(Operation.attach_resource_and_project)
            .user(self._user)
            .payload("projectName", project_name)
            .payload("resourceId", resource_id)
            .build()
        )
        return self._call(action, results.AttachResult, responses.AttachResourceAndProjectResponse)

    def update_project_priv(
        self, username: str, project_name: str, edit_users: Sequence[str], access_users: Sequence[str]
    ) -> responses.UpdateProjectPrivResponse:
        """
        Replace the users that can edit and access the project. The lists are not merged with the current ones.
        """
        action = (
            ActionBuilder(Operation.update_project_priv)
            .user(username)
            .payload("projectName", project_name)
            .payload("editUsers", edit_users)
            .payload("accessUsers", access_users)
            .build()
        )
        return self._call(action, results.UpdateProjectResult, responses.UpdateProjectPrivResponse)

    def get_project_info_by_name(self, project_name: str) -> responses.BmlResponse:
        raise NotImplementedOperation("getProjectInfoByName")

    def get_project_priv(self, project_name: str) -> responses.BmlResponse:
        raise NotImplementedOperation("getProjectPriv")

    # Resources shared through a project
    def upload_share_resource(
        self, user: str, project_name: str, file_path: str, input_stream: Optional[BinaryIO] = None
    ) -> responses.UploadResponse:
        """
        Upload a new resource into a project
        """
        if input_stream is None:
            raise NotImplementedOperation("uploadShareResource without an input stream")

        action = (
            ActionBuilder(Operation.upload_share_resource)
            .user(user)
            .parameter("projectName", project_name)
            .payload("projectName", project_name)
            .stream(const.FILE_STREAM_NAME, path_to_name(file_path), input_stream)
            .build()
        )
        return self._call(action, results.UploadShareResult, responses.UploadResponse)

    def update_share_resource(
        self, user: str, resource_id: str, file_path: str, input_stream: Optional[BinaryIO] = None
    ) -> responses.UpdateResponse:
        if input_stream is None:
            raise NotImplementedOperation("updateShareResource without an input stream")

        action = (
            ActionBuilder(Operation.update_share_resource)
            .user(user)
            .parameter("resourceId", resource_id)
            .stream(const.FILE_STREAM_NAME, path_to_name(file_path), input_stream)
            .build()
        )
        return self._call(action, results.UpdateShareResult, responses.UpdateResponse)

    def download_share_resource(
        self,
        user: str,
        resource_id: str,
        version: Optional[str] = None,
        path: Optional[str] = None,
        overwrite: bool = False,
    ) -> responses.DownloadResponse:
        """
        Download a version of a resource attached to a project. Behaves as :meth:`download_resource`, except that a
        version is required.
        """
        if version is None:
            raise NotImplementedOperation("downloadShareResource without a version")

        action = self._download_action(Operation.download_share_resource, user, resource_id, version)
        if path is None:
            return self._download_stream(action, results.DownloadShareResult, resource_id, version)
        return self._download_to_path(action, results.DownloadShareResult, resource_id, version, path, overwrite)

    def delete_share_resource(self, user: str, resource_id: str) -> responses.DeleteResponse:
        raise NotImplementedOperation("deleteShareResource")
