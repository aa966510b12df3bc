"""Data client: captured tabular/binary data, tags, bounding boxes and datasets.

Talks to three services over one channel: ``DataService`` for queries and
edits, ``DatasetService`` for dataset CRUD and ``DataSyncService`` for
uploads.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Union

import bson
from viam.gen.app.data.v1 import data_pb2 as data_pb
from viam.gen.app.dataset.v1 import dataset_pb2 as dataset_pb
from viam.gen.app.datasync.v1 import data_sync_pb2 as datasync_pb

from ..error_handling import RequestValidationError
from ..resource import AppServiceClient, Channel, Options
from ..schema import service
from ..utils import (
    datetime_to_timestamp,
    dict_to_struct,
    message_to_dict,
    struct_to_dict,
    timestamp_to_datetime,
)

logger = logging.getLogger(__name__)

BinaryID = data_pb.BinaryID
Filter = data_pb.Filter
Order = data_pb.Order

DEFAULT_PAGE_LIMIT = 50

DatasetService = service(dataset_pb, "DatasetService")
DataSyncService = service(datasync_pb, "DataSyncService")

# Binary data is addressed either by a legacy BinaryID message or by its
# binary data ID string.
DataID = Union[BinaryID, str]


def _time_or_none(message, field: str) -> Optional[datetime]:
    return timestamp_to_datetime(getattr(message, field)) if message.HasField(field) else None


def _data_request(
    filter: Optional[Filter], limit: int, sort_order: Optional[Order], last: str
) -> data_pb.DataRequest:
    request = data_pb.DataRequest(limit=limit, last=last)
    if filter is not None:
        request.filter.CopyFrom(filter)
    if sort_order is not None:
        request.sort_order = sort_order
    return request


def _id_fields(ids: Sequence[DataID]) -> dict[str, list]:
    return {
        "binary_ids": [i for i in ids if isinstance(i, BinaryID)],
        "binary_data_ids": [i for i in ids if isinstance(i, str)],
    }


def _id_field(data_id: DataID) -> dict[str, DataID]:
    if isinstance(data_id, BinaryID):
        return {"binary_id": data_id}
    return {"binary_data_id": data_id}


def _dataset_to_dict(dataset: dataset_pb.Dataset) -> dict[str, Any]:
    result = message_to_dict(dataset)
    result["created"] = _time_or_none(dataset, "time_created")
    return result


class DataClient(AppServiceClient):
    SERVICE = service(data_pb, "DataService")

    def __init__(self, channel: Channel, options: Optional[Options] = None):
        super().__init__(channel, options)
        self._dataset_stub = channel.stub(DatasetService)
        self._sync_stub = channel.stub(DataSyncService)

    # ── Tabular queries ──────────────────────────────────────────────

    async def tabular_data_by_sql(self, organization_id: str, sql_query: str) -> list[dict]:
        """Rows of a SQL query over the organization's tabular data."""
        response = await self._call(
            "TabularDataBySQL", organization_id=organization_id, sql_query=sql_query
        )
        return [bson.decode(row) for row in response.raw_data]

    async def tabular_data_by_mql(
        self, organization_id: str, mql_binary: Sequence[bytes]
    ) -> list[dict]:
        """Run an aggregation pipeline given as BSON-encoded stages."""
        response = await self._call(
            "TabularDataByMQL", organization_id=organization_id, mql_binary=mql_binary
        )
        return [bson.decode(row) for row in response.raw_data]

    async def tabular_data_by_filter(
        self,
        filter: Optional[Filter] = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        sort_order: Optional[Order] = None,
        last: str = "",
        count_only: bool = False,
        include_internal_data: bool = False,
    ) -> dict[str, Any]:
        """One page of tabular data matching *filter* (all data when None).

        Returns:
            {"data": [{"data": {...}, "metadata": CaptureMetadata,
             "time_requested": datetime, "time_received": datetime}, ...],
             "count": int, "last": str}

            ``last`` is the page cursor to pass back for the next page.
            Entries whose metadata index is out of range get empty metadata.
        """
        request = _data_request(filter, limit, sort_order, last)
        response = await self._call(
            "TabularDataByFilter",
            data_request=request,
            count_only=count_only,
            include_internal_data=include_internal_data,
        )
        metadata = list(response.metadata)
        data = []
        for item in response.data:
            index = item.metadata_index
            data.append(
                {
                    "data": struct_to_dict(item.data),
                    "metadata": (
                        metadata[index] if index < len(metadata) else data_pb.CaptureMetadata()
                    ),
                    "time_requested": _time_or_none(item, "time_requested"),
                    "time_received": _time_or_none(item, "time_received"),
                }
            )
        return {"data": data, "count": response.count, "last": response.last}

    # ── Binary queries ───────────────────────────────────────────────

    async def binary_data_by_filter(
        self,
        filter: Optional[Filter] = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        sort_order: Optional[Order] = None,
        last: str = "",
        include_binary: bool = True,
        count_only: bool = False,
        include_internal_data: bool = False,
    ) -> dict[str, Any]:
        request = _data_request(filter, limit, sort_order, last)
        response = await self._call(
            "BinaryDataByFilter",
            data_request=request,
            include_binary=include_binary,
            count_only=count_only,
            include_internal_data=include_internal_data,
        )
        return {"data": list(response.data), "count": response.count, "last": response.last}

    async def binary_data_by_ids(self, ids: Sequence[DataID]) -> list[data_pb.BinaryData]:
        response = await self._call("BinaryDataByIDs", **_id_fields(ids), include_binary=True)
        return list(response.data)

    # ── Deletion ─────────────────────────────────────────────────────

    async def delete_tabular_data(self, organization_id: str, delete_older_than_days: int) -> int:
        response = await self._call(
            "DeleteTabularData",
            organization_id=organization_id,
            delete_older_than_days=delete_older_than_days,
        )
        return response.deleted_count

    async def delete_binary_data_by_filter(
        self, filter: Optional[Filter] = None, include_internal_data: bool = True
    ) -> int:
        response = await self._call(
            "DeleteBinaryDataByFilter",
            filter=filter,
            include_internal_data=include_internal_data,
        )
        return response.deleted_count

    async def delete_binary_data_by_ids(self, ids: Sequence[DataID]) -> int:
        return (await self._call("DeleteBinaryDataByIDs", **_id_fields(ids))).deleted_count

    # ── Tags ─────────────────────────────────────────────────────────

    async def add_tags_to_binary_data_by_ids(
        self, tags: Sequence[str], ids: Sequence[DataID]
    ) -> None:
        await self._call("AddTagsToBinaryDataByIDs", tags=tags, **_id_fields(ids))

    async def add_tags_to_binary_data_by_filter(
        self, tags: Sequence[str], filter: Optional[Filter] = None
    ) -> None:
        await self._call("AddTagsToBinaryDataByFilter", tags=tags, filter=filter or Filter())

    async def remove_tags_from_binary_data_by_ids(
        self, tags: Sequence[str], ids: Sequence[DataID]
    ) -> int:
        response = await self._call(
            "RemoveTagsFromBinaryDataByIDs", tags=tags, **_id_fields(ids)
        )
        return response.deleted_count

    async def remove_tags_from_binary_data_by_filter(
        self, tags: Sequence[str], filter: Optional[Filter] = None
    ) -> int:
        response = await self._call(
            "RemoveTagsFromBinaryDataByFilter", tags=tags, filter=filter or Filter()
        )
        return response.deleted_count

    async def tags_by_filter(self, filter: Optional[Filter] = None) -> list[str]:
        return list((await self._call("TagsByFilter", filter=filter)).tags)

    # ── Bounding boxes ───────────────────────────────────────────────

    async def add_bounding_box_to_image_by_id(
        self,
        binary_id: DataID,
        label: str,
        x_min_normalized: float,
        y_min_normalized: float,
        x_max_normalized: float,
        y_max_normalized: float,
    ) -> str:
        """Add a labelled box (corners in ``[0, 1]``); returns the box ID."""
        response = await self._call(
            "AddBoundingBoxToImageByID",
            **_id_field(binary_id),
            label=label,
            x_min_normalized=x_min_normalized,
            y_min_normalized=y_min_normalized,
            x_max_normalized=x_max_normalized,
            y_max_normalized=y_max_normalized,
        )
        return response.bbox_id

    async def remove_bounding_box_from_image_by_id(
        self, binary_id: DataID, bbox_id: str
    ) -> None:
        await self._call(
            "RemoveBoundingBoxFromImageByID", **_id_field(binary_id), bbox_id=bbox_id
        )

    async def bounding_box_labels_by_filter(self, filter: Optional[Filter] = None) -> list[str]:
        response = await self._call("BoundingBoxLabelsByFilter", filter=filter or Filter())
        return list(response.labels)

    # ── Database access ──────────────────────────────────────────────

    async def configure_database_user(self, organization_id: str, password: str) -> None:
        await self._call(
            "ConfigureDatabaseUser", organization_id=organization_id, password=password
        )

    async def get_database_connection(
        self, organization_id: str
    ) -> data_pb.GetDatabaseConnectionResponse:
        return await self._call("GetDatabaseConnection", organization_id=organization_id)

    # ── Datasets ─────────────────────────────────────────────────────

    async def add_binary_data_to_dataset_by_ids(
        self, ids: Sequence[DataID], dataset_id: str
    ) -> None:
        await self._call(
            "AddBinaryDataToDatasetByIDs", **_id_fields(ids), dataset_id=dataset_id
        )

    async def remove_binary_data_from_dataset_by_ids(
        self, ids: Sequence[DataID], dataset_id: str
    ) -> None:
        await self._call(
            "RemoveBinaryDataFromDatasetByIDs", **_id_fields(ids), dataset_id=dataset_id
        )

    async def create_dataset(self, name: str, organization_id: str) -> str:
        response = await self._call_on(
            self._dataset_stub,
            DatasetService,
            "CreateDataset",
            name=name,
            organization_id=organization_id,
        )
        return response.id

    async def delete_dataset(self, dataset_id: str) -> None:
        await self._call_on(
            self._dataset_stub, DatasetService, "DeleteDataset", id=dataset_id
        )

    async def rename_dataset(self, dataset_id: str, name: str) -> None:
        await self._call_on(
            self._dataset_stub,
            DatasetService,
            "RenameDataset",
            id=dataset_id,
            name=name,
        )

    async def list_datasets_by_organization_id(self, organization_id: str) -> list[dict]:
        response = await self._call_on(
            self._dataset_stub,
            DatasetService,
            "ListDatasetsByOrganizationID",
            organization_id=organization_id,
        )
        return [_dataset_to_dict(dataset) for dataset in response.datasets]

    async def list_datasets_by_ids(self, ids: Sequence[str]) -> list[dict]:
        response = await self._call_on(
            self._dataset_stub, DatasetService, "ListDatasetsByIDs", ids=ids
        )
        return [_dataset_to_dict(dataset) for dataset in response.datasets]

    # ── Uploads ──────────────────────────────────────────────────────

    async def tabular_data_capture_upload(
        self,
        tabular_data: Sequence[Mapping[str, Any]],
        part_id: str,
        component_type: str,
        component_name: str,
        method_name: str,
        data_request_times: Sequence[tuple[datetime, datetime]],
        tags: Optional[Sequence[str]] = None,
    ) -> str:
        """Upload readings captured on a robot; returns the file ID.

        ``data_request_times[i]`` is the ``(requested, received)`` pair for
        ``tabular_data[i]``; all points share one metadata record.

        Raises:
            RequestValidationError: the two sequences differ in length.
                Nothing is sent.
        """
        if len(data_request_times) != len(tabular_data):
            raise RequestValidationError(
                "data_request_times and tabular_data lengths must be equal"
            )
        metadata = datasync_pb.UploadMetadata(
            part_id=part_id,
            component_type=component_type,
            component_name=component_name,
            method_name=method_name,
            type=datasync_pb.DataType.DATA_TYPE_TABULAR_SENSOR,
            tags=tags or [],
        )
        contents = [
            datasync_pb.SensorData(
                metadata=datasync_pb.SensorMetadata(
                    time_requested=datetime_to_timestamp(requested),
                    time_received=datetime_to_timestamp(received),
                ),
                struct=dict_to_struct(data),
            )
            for data, (requested, received) in zip(tabular_data, data_request_times)
        ]
        return await self._upload(metadata, contents)

    async def binary_data_capture_upload(
        self,
        binary_data: bytes,
        part_id: str,
        component_type: str,
        component_name: str,
        method_name: str,
        file_extension: str,
        data_request_times: tuple[datetime, datetime],
        tags: Optional[Sequence[str]] = None,
    ) -> str:
        """Upload one binary capture (e.g. a ``.jpg``); returns the file ID."""
        requested, received = data_request_times
        metadata = datasync_pb.UploadMetadata(
            part_id=part_id,
            component_type=component_type,
            component_name=component_name,
            method_name=method_name,
            type=datasync_pb.DataType.DATA_TYPE_BINARY_SENSOR,
            file_extension=file_extension,
            tags=tags or [],
        )
        content = datasync_pb.SensorData(
            metadata=datasync_pb.SensorMetadata(
                time_requested=datetime_to_timestamp(requested),
                time_received=datetime_to_timestamp(received),
            ),
            binary=binary_data,
        )
        return await self._upload(metadata, [content])

    async def _upload(self, metadata, contents) -> str:
        response = await self._call_on(
            self._sync_stub,
            DataSyncService,
            "DataCaptureUpload",
            metadata=metadata,
            sensor_contents=contents,
        )
        logger.debug("Uploaded %d capture(s) as %s", len(contents), response.file_id)
        return response.file_id

    # ── Filters ──────────────────────────────────────────────────────

    @staticmethod
    def create_filter(
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        tags: Optional[Sequence[str]] = None,
        **fields: Any,
    ) -> Filter:
        """Build a :class:`Filter` from its fields plus time and tag shortcuts.

        ``start_time``/``end_time`` fill the capture interval and ``tags``
        the tags filter.  Any other keyword is passed to ``Filter`` as-is.
        """
        filter = Filter(**fields)
        if start_time is not None:
            filter.interval.start.CopyFrom(datetime_to_timestamp(start_time))
        if end_time is not None:
            filter.interval.end.CopyFrom(datetime_to_timestamp(end_time))
        if tags:
            filter.tags_filter.tags.extend(tags)
        return filter
