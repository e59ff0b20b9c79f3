"""DynamoDB implementation of UserRepository."""

import json
from decimal import Decimal
from typing import Any, Dict

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from ..domain.entities.user import TUTOR_AGGREGATE_FIELDS, TutorProfile, User
from ..domain.errors import NotFoundError
from ..domain.interfaces.user_repository import UserRepository


def _to_dynamodb(value: Dict[str, Any]) -> Dict[str, Any]:
    """DynamoDB rejects floats; round-trip through JSON to turn them into Decimals."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def _from_dynamodb(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamodb(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamodb(v) for v in value]
    return value


class DynamoDBUserRepository(UserRepository):
    """DynamoDB implementation of the UserRepository protocol."""

    def __init__(self, table_name: str, region_name: str = "us-east-1"):
        """Initialize the DynamoDB user repository.

        Args:
            table_name: The name of the DynamoDB table.
            region_name: AWS region name (default: us-east-1).
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource("dynamodb", region_name=region_name)
        self.table = self.dynamodb.Table(table_name)

    def get_user(self, user_id: str) -> User:
        """Retrieve a user by user ID from DynamoDB.

        Raises:
            NotFoundError: If the user is not found.
        """
        response = self.table.get_item(Key={"id": user_id})

        if "Item" not in response:
            raise NotFoundError(f"User with id {user_id} not found")

        return self._item_to_user(response["Item"])

    def list_tutors(self) -> list[User]:
        tutors = []
        kwargs: Dict[str, Any] = {"FilterExpression": Attr("is_tutor").eq(True)}
        while True:
            response = self.table.scan(**kwargs)
            tutors.extend(self._item_to_user(item) for item in response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                return tutors
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]

    def save_user(self, user: User) -> None:
        self.table.put_item(Item=_to_dynamodb(user.model_dump(mode="json", exclude_none=True)))

    def update_tutor_aggregates(self, user_id: str, **aggregates: float) -> User:
        """Set individual aggregate attributes inside ``tutor_profile``.

        Each field is written with its own ``SET tutor_profile.<field>``
        clause, leaving the rest of the profile untouched. Users without a
        profile map get a default one before the fields are set.

        Raises:
            NotFoundError: If the user is not found.
            ValueError: If a field is not an aggregate field.
        """
        unknown = set(aggregates) - TUTOR_AGGREGATE_FIELDS
        if unknown:
            raise ValueError(f"Not tutor aggregate fields: {', '.join(sorted(unknown))}")

        names = {"#profile": "tutor_profile"}
        values = {}
        clauses = []
        for i, (field, value) in enumerate(sorted(aggregates.items())):
            names[f"#f{i}"] = field
            values[f":v{i}"] = value
            clauses.append(f"#profile.#f{i} = :v{i}")

        request = {
            "Key": {"id": user_id},
            "UpdateExpression": "SET " + ", ".join(clauses),
            "ConditionExpression": Attr("tutor_profile").exists(),
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": _to_dynamodb(values),
            "ReturnValues": "ALL_NEW",
        }
        try:
            response = self.table.update_item(**request)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                raise
            self._create_tutor_profile(user_id)
            response = self.table.update_item(**request)
        return self._item_to_user(response["Attributes"])

    def _create_tutor_profile(self, user_id: str) -> None:
        """Add a default ``tutor_profile`` map to an existing user that has none.

        Raises:
            NotFoundError: If the user is not found.
        """
        try:
            self.table.update_item(
                Key={"id": user_id},
                UpdateExpression="SET tutor_profile = if_not_exists(tutor_profile, :profile)",
                ConditionExpression=Attr("id").exists(),
                ExpressionAttributeValues={":profile": _to_dynamodb(TutorProfile().model_dump(mode="json"))},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise NotFoundError(f"User with id {user_id} not found")
            raise

    def _item_to_user(self, item: Dict[str, Any]) -> User:
        """Convert a DynamoDB item to a User entity.

        Numbers come back as Decimal and are converted back to int or float.
        """
        profile = item.get("tutor_profile")
        return User(
            id=item["id"],
            name=item["name"],
            email=item.get("email"),
            year=item.get("year"),
            course=item.get("course"),
            is_tutor=bool(item.get("is_tutor", False)),
            subjects_need_help=list(item.get("subjects_need_help", [])),
            tutor_profile=TutorProfile.model_validate(_from_dynamodb(profile)) if profile else None,
        )
