"""Tests for DynamoDB user repository."""

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from peertutor.domain.entities import TutorProfile, User
from peertutor.domain.errors import NotFoundError
from peertutor.infrastructure.dynamodb_user_repository import DynamoDBUserRepository


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table."""
    with patch("peertutor.infrastructure.dynamodb_user_repository.boto3") as mock_boto3:
        mock_resource = MagicMock()
        mock_table = MagicMock()
        mock_boto3.resource.return_value = mock_resource
        mock_resource.Table.return_value = mock_table
        yield mock_table


@pytest.fixture
def repository(mock_dynamodb_table):
    """Create a DynamoDB user repository instance."""
    return DynamoDBUserRepository(table_name="test-users", region_name="us-east-1")


@pytest.fixture
def sample_dynamodb_item():
    """A tutor item as DynamoDB returns it, numbers as Decimal."""
    return {
        "id": "tutor-042",
        "name": "Alice Tan",
        "year": "Year 3",
        "course": "Computer Science",
        "is_tutor": True,
        "subjects_need_help": [],
        "tutor_profile": {
            "rating": Decimal("4.8"),
            "review_count": Decimal("12"),
            "total_sessions": Decimal("20"),
            "hours_taught": Decimal("27.5"),
            "subjects": [
                {"module_code": "CS201", "name": "Algorithms", "grade": "A", "sessions": Decimal("8")}
            ],
        },
    }


class TestDynamoDBUserRepository:
    """Test cases for DynamoDBUserRepository."""

    def test_init(self, repository):
        assert repository.table_name == "test-users"

    def test_get_user_success(self, repository, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.get_item.return_value = {"Item": sample_dynamodb_item}

        user = repository.get_user("tutor-042")

        assert isinstance(user, User)
        assert user.is_tutor
        assert user.rating == 4.8
        assert user.tutor_profile.review_count == 12
        assert user.tutor_profile.hours_taught == 27.5
        assert user.subject_names == ["Algorithms"]
        mock_dynamodb_table.get_item.assert_called_once_with(Key={"id": "tutor-042"})

    def test_get_user_not_found(self, repository, mock_dynamodb_table):
        mock_dynamodb_table.get_item.return_value = {}

        with pytest.raises(NotFoundError, match="User with id ghost not found"):
            repository.get_user("ghost")

    def test_student_without_profile(self, repository, mock_dynamodb_table):
        mock_dynamodb_table.get_item.return_value = {"Item": {"id": "s1", "name": "Sam"}}

        user = repository.get_user("s1")

        assert not user.is_tutor
        assert user.tutor_profile is None

    def test_list_tutors_follows_pagination(self, repository, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.scan.side_effect = [
            {"Items": [sample_dynamodb_item], "LastEvaluatedKey": {"id": "tutor-042"}},
            {"Items": [{**sample_dynamodb_item, "id": "tutor-043", "name": "Bob Lim"}]},
        ]

        tutors = repository.list_tutors()

        assert [t.id for t in tutors] == ["tutor-042", "tutor-043"]
        assert mock_dynamodb_table.scan.call_count == 2

    def test_save_user_converts_floats(self, repository, mock_dynamodb_table):
        user = User(id="t", name="Alice", is_tutor=True, tutor_profile=TutorProfile(rating=4.5))

        repository.save_user(user)

        item = mock_dynamodb_table.put_item.call_args.kwargs["Item"]
        assert item["tutor_profile"]["rating"] == Decimal("4.5")
        assert "email" not in item

    def test_update_tutor_aggregates_sets_only_named_fields(
        self, repository, mock_dynamodb_table, sample_dynamodb_item
    ):
        mock_dynamodb_table.update_item.return_value = {"Attributes": sample_dynamodb_item}

        user = repository.update_tutor_aggregates("tutor-042", rating=4.8, review_count=12)

        kwargs = mock_dynamodb_table.update_item.call_args.kwargs
        assert kwargs["Key"] == {"id": "tutor-042"}
        assert kwargs["UpdateExpression"] == "SET #profile.#f0 = :v0, #profile.#f1 = :v1"
        assert kwargs["ExpressionAttributeNames"] == {
            "#profile": "tutor_profile",
            "#f0": "rating",
            "#f1": "review_count",
        }
        assert kwargs["ExpressionAttributeValues"] == {":v0": Decimal("4.8"), ":v1": 12}
        assert user.rating == 4.8

    def test_update_aggregates_creates_missing_profile(
        self, repository, mock_dynamodb_table, sample_dynamodb_item
    ):
        mock_dynamodb_table.update_item.side_effect = [
            _conditional_check_failed(),
            {},
            {"Attributes": sample_dynamodb_item},
        ]

        user = repository.update_tutor_aggregates("tutor-042", total_sessions=1)

        assert mock_dynamodb_table.update_item.call_count == 3
        create = mock_dynamodb_table.update_item.call_args_list[1].kwargs
        assert "if_not_exists" in create["UpdateExpression"]
        assert create["ExpressionAttributeValues"][":profile"]["total_sessions"] == 0
        assert user.id == "tutor-042"

    def test_update_missing_tutor(self, repository, mock_dynamodb_table):
        mock_dynamodb_table.update_item.side_effect = _conditional_check_failed()

        with pytest.raises(NotFoundError):
            repository.update_tutor_aggregates("ghost", rating=4.0)

        assert mock_dynamodb_table.update_item.call_count == 2

    def test_update_rejects_non_aggregate_fields(self, repository, mock_dynamodb_table):
        with pytest.raises(ValueError):
            repository.update_tutor_aggregates("tutor-042", bio="hello")

        mock_dynamodb_table.update_item.assert_not_called()


def _conditional_check_failed() -> ClientError:
    return ClientError(
        {"Error": {"Code": "ConditionalCheckFailedException", "Message": "failed"}},
        "UpdateItem",
    )
