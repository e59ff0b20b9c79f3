"""DynamoDB implementation of Session Repository."""

from datetime import date, datetime
from typing import Any, Dict, Optional

import aioboto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from ..domain.entities.tutoring_session import Review, SessionStatus, TutoringSession
from ..domain.errors import ConcurrentUpdate, NotFoundError
from ..domain.interfaces.session_repository import SessionRepository


class DynamoDBSessionRepository(SessionRepository):
    """DynamoDB repository for managing tutoring session persistence."""

    def __init__(self, table_name: str, region_name: str = "us-east-1"):
        """Initialize the DynamoDB session repository.

        Args:
            table_name: The name of the DynamoDB table.
            region_name: AWS region name (default: us-east-1).
        """
        self.table_name = table_name
        self.region_name = region_name
        self._session = aioboto3.Session()

    async def save_session(self, session: TutoringSession) -> None:
        """Save a session to DynamoDB.

        Args:
            session: The session entity to save.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._session_to_item(session))

    async def get_session(self, session_id: str) -> TutoringSession:
        """Retrieve a session by ID from DynamoDB.

        Raises:
            NotFoundError: If the session is not found.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"id": session_id})

            if "Item" not in response:
                raise NotFoundError(f"Session with id {session_id} not found")

            return self._item_to_session(response["Item"])

    async def update_session(
        self,
        session: TutoringSession,
        expected_version: Optional[datetime] = None,
    ) -> None:
        """Replace an existing session in DynamoDB.

        With ``expected_version`` the put is conditional on the stored
        ``updated_at``, so two writers racing from the same read cannot
        both succeed.

        Raises:
            NotFoundError: If the session is not found.
            ConcurrentUpdate: If the stored version differs from ``expected_version``.
        """
        condition = Attr("id").exists()
        if expected_version is not None:
            condition = condition & Attr("updated_at").eq(expected_version.isoformat())

        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            try:
                await table.put_item(Item=self._session_to_item(session), ConditionExpression=condition)
            except ClientError as e:
                if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                    raise
                if expected_version is None:
                    raise NotFoundError(f"Session with id {session.id} not found")
                response = await table.get_item(Key={"id": str(session.id)}, ConsistentRead=True)
                if "Item" not in response:
                    raise NotFoundError(f"Session with id {session.id} not found")
                raise ConcurrentUpdate(f"Session {session.session_code} was modified by another request")

    async def list_sessions_for_tutor(self, tutor_id: str) -> list[TutoringSession]:
        return await self._scan(Attr("tutor_id").eq(tutor_id))

    async def list_sessions_for_student(
        self,
        student_id: str,
        status: Optional[SessionStatus] = None,
        limit: Optional[int] = None,
    ) -> list[TutoringSession]:
        condition = Attr("student_id").eq(student_id)
        if status is not None:
            condition = condition & Attr("status").eq(status.value)

        sessions = await self._scan(condition)
        sessions.sort(key=lambda s: (s.date, s.created_at), reverse=True)
        return sessions[:limit] if limit is not None else sessions

    async def list_sessions_for_user(self, user_id: str) -> list[TutoringSession]:
        return await self._scan(Attr("student_id").eq(user_id) | Attr("tutor_id").eq(user_id))

    async def _scan(self, condition) -> list[TutoringSession]:
        """Scan the table with a filter, following pagination."""
        sessions = []
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            kwargs: Dict[str, Any] = {"FilterExpression": condition, "ConsistentRead": True}
            while True:
                response = await table.scan(**kwargs)
                sessions.extend(self._item_to_session(item) for item in response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        return sessions

    def _session_to_item(self, session: TutoringSession) -> Dict[str, Any]:
        """Convert a TutoringSession entity to a DynamoDB item.

        Optional attributes are omitted rather than stored as nulls.
        """
        item: Dict[str, Any] = {
            "id": str(session.id),
            "session_code": session.session_code,
            "student_id": session.student_id,
            "tutor_id": session.tutor_id,
            "subject": session.subject,
            "topic": session.topic,
            "date": session.date.isoformat(),
            "time": session.time,
            "duration_minutes": session.duration_minutes,
            "location": session.location,
            "status": session.status.value,
            "created_at": session.created_at.isoformat(),
            "updated_at": session.updated_at.isoformat(),
        }
        for key in ("module_code", "notes", "session_notes", "created_by"):
            value = getattr(session, key)
            if value is not None:
                item[key] = value
        if session.review is not None:
            item["review"] = {
                "rating": session.review.rating,
                "comment": session.review.comment,
                "reviewed_at": session.review.reviewed_at.isoformat(),
            }
        return item

    def _item_to_session(self, item: Dict[str, Any]) -> TutoringSession:
        """Convert a DynamoDB item to a TutoringSession entity."""
        review = None
        if item.get("review"):
            review = Review(
                rating=int(item["review"]["rating"]),
                comment=item["review"].get("comment", ""),
                reviewed_at=datetime.fromisoformat(item["review"]["reviewed_at"]),
            )

        return TutoringSession(
            id=item["id"],
            session_code=item["session_code"],
            student_id=item["student_id"],
            tutor_id=item["tutor_id"],
            subject=item["subject"],
            module_code=item.get("module_code"),
            topic=item["topic"],
            date=date.fromisoformat(item["date"]),
            time=item["time"],
            duration_minutes=int(item["duration_minutes"]),
            location=item["location"],
            notes=item.get("notes"),
            session_notes=item.get("session_notes"),
            status=SessionStatus(item["status"]),
            review=review,
            created_by=item.get("created_by"),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )
