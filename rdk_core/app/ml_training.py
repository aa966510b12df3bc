"""ML training client."""

from __future__ import annotations

from typing import Optional, Sequence

from viam.gen.app.mltraining.v1 import ml_training_pb2 as mltraining_pb

from ..resource import AppServiceClient
from ..schema import service

ModelType = mltraining_pb.ModelType
TrainingStatus = mltraining_pb.TrainingStatus
TrainingJobMetadata = mltraining_pb.TrainingJobMetadata


class MLTrainingClient(AppServiceClient):
    SERVICE = service(mltraining_pb, "MLTrainingService")

    async def submit_training_job(
        self,
        organization_id: str,
        dataset_id: str,
        model_name: str,
        model_version: str,
        model_type: int,
        tags: Sequence[str] = (),
    ) -> str:
        """Start a managed training job; returns the job ID."""
        response = await self._call(
            "SubmitTrainingJob",
            organization_id=organization_id,
            dataset_id=dataset_id,
            model_name=model_name,
            model_version=model_version,
            model_type=model_type,
            tags=tags,
        )
        return response.id

    async def submit_custom_training_job(
        self,
        organization_id: str,
        dataset_id: str,
        registry_item_id: str,
        registry_item_version: str,
        model_name: str,
        model_version: str,
    ) -> str:
        """Start a job running a training script from the registry."""
        response = await self._call(
            "SubmitCustomTrainingJob",
            organization_id=organization_id,
            dataset_id=dataset_id,
            registry_item_id=registry_item_id,
            registry_item_version=registry_item_version,
            model_name=model_name,
            model_version=model_version,
        )
        return response.id

    async def get_training_job(self, job_id: str) -> Optional[TrainingJobMetadata]:
        response = await self._call("GetTrainingJob", id=job_id)
        return response.metadata if response.HasField("metadata") else None

    async def list_training_jobs(
        self,
        organization_id: str,
        status: int = TrainingStatus.TRAINING_STATUS_UNSPECIFIED,
    ) -> list[TrainingJobMetadata]:
        response = await self._call(
            "ListTrainingJobs", organization_id=organization_id, status=status
        )
        return list(response.jobs)

    async def cancel_training_job(self, job_id: str) -> None:
        await self._call("CancelTrainingJob", id=job_id)

    async def delete_completed_training_job(self, job_id: str) -> None:
        await self._call("DeleteCompletedTrainingJob", id=job_id)
