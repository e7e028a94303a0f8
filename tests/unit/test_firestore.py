"""
Tests for the Firestore REST client and document decoding.
"""

import asyncio
import unittest
from unittest.mock import AsyncMock, patch

import pytest

from tutorbook.clients.firestore import FirestoreClient
from tutorbook.config.config import FirebaseConfig
from tutorbook.models.org import Org, decode_fields, decode_value
from tutorbook.utils.errors import DocumentStoreError

ORG_DOCUMENT = {
    "name": "projects/tutorbook/databases/(default)/documents/orgs/gunn",
    "fields": {
        "name": {"stringValue": "Gunn High School"},
        "members": {"arrayValue": {"values": [{"stringValue": "admin"}]}},
        "email": {"stringValue": "team@gunn.org"},
    },
}


class TestDecode(unittest.TestCase):
    """Test cases for Firestore value decoding."""

    def test_scalars(self):
        self.assertEqual(decode_value({"stringValue": "a"}), "a")
        self.assertEqual(decode_value({"integerValue": "42"}), 42)
        self.assertEqual(decode_value({"doubleValue": 1.5}), 1.5)
        self.assertTrue(decode_value({"booleanValue": True}))
        self.assertIsNone(decode_value({"nullValue": None}))

    def test_nested(self):
        fields = {
            "availability": {
                "arrayValue": {
                    "values": [
                        {
                            "mapValue": {
                                "fields": {
                                    "from": {"timestampValue": "2020-04-19T18:00:00Z"},
                                    "to": {"timestampValue": "2020-04-19T20:00:00Z"},
                                }
                            }
                        }
                    ]
                }
            },
            "langs": {"arrayValue": {}},
        }
        self.assertEqual(
            decode_fields(fields),
            {
                "availability": [
                    {"from": "2020-04-19T18:00:00Z", "to": "2020-04-19T20:00:00Z"}
                ],
                "langs": [],
            },
        )

    def test_unsupported(self):
        with self.assertRaises(DocumentStoreError):
            decode_value({"geoPointValue": {}})

    def test_org_from_firestore(self):
        org = Org.from_firestore(ORG_DOCUMENT)
        self.assertEqual(org.id, "gunn")
        self.assertEqual(org.name, "Gunn High School")
        self.assertEqual(org.members, ["admin"])
        self.assertEqual(org.email, "team@gunn.org")


@pytest.fixture
def firestore_client():
    return FirestoreClient(FirebaseConfig(project_id="tutorbook", access_token="token"))


def test_client_initialization(firestore_client):
    assert firestore_client.documents_url == (
        "https://firestore.googleapis.com/v1/projects/tutorbook/databases/(default)/documents"
    )
    assert firestore_client._get_headers()["Authorization"] == "Bearer token"


@pytest.mark.asyncio
async def test_orgs_for_member(firestore_client):
    rows = [{"document": ORG_DOCUMENT, "readTime": "now"}, {"readTime": "now"}]
    with patch.object(firestore_client, "_request", AsyncMock(return_value=rows)) as request:
        orgs = await firestore_client.orgs_for_member("admin")

    assert [org.id for org in orgs] == ["gunn"]
    method, url, payload = request.call_args.args
    assert method == "POST"
    assert url.endswith("/documents:runQuery")
    assert payload["structuredQuery"]["from"] == [{"collectionId": "orgs"}]
    assert payload["structuredQuery"]["where"]["fieldFilter"] == {
        "field": {"fieldPath": "members"},
        "op": "ARRAY_CONTAINS",
        "value": {"stringValue": "admin"},
    }


@pytest.mark.asyncio
async def test_get_document(firestore_client):
    with patch.object(firestore_client, "_request", AsyncMock(return_value=ORG_DOCUMENT)):
        fields = await firestore_client.get_document("orgs/gunn")

    assert fields["name"] == "Gunn High School"


@pytest.mark.asyncio
async def test_get_missing_document(firestore_client):
    with patch.object(firestore_client, "_request", AsyncMock(return_value=None)):
        assert await firestore_client.get_document("orgs/missing") is None


@pytest.mark.asyncio
async def test_request_timeout(firestore_client):
    with patch.object(firestore_client, "_request", AsyncMock(side_effect=asyncio.TimeoutError())):
        with pytest.raises(DocumentStoreError):
            await firestore_client.orgs_for_member("admin")
