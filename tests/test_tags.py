"""
Tests for tag CRUD
"""
import pytest

from notesync.exceptions import AuthorizationException, NotFoundException, ValidationException


class TestTagService:
    """Tests for TagService"""

    def test_create_and_list(self, tags, user, other_user):
        tags.create(user.id, ' work ')
        tags.create(user.id, 'home')
        tags.create(other_user.id, 'theirs')

        assert [t.name for t in tags.list(user.id)] == ['work', 'home']

    def test_create_requires_name(self, tags, user):
        with pytest.raises(ValidationException):
            tags.create(user.id, '')

    def test_get_foreign_tag_is_forbidden(self, tags, user, other_user):
        tag = tags.create(other_user.id, 'theirs')

        with pytest.raises(AuthorizationException):
            tags.get_by_id(user.id, tag.id)

    @pytest.mark.parametrize('tag_id', [999, 'abc', None])
    def test_get_missing_or_invalid(self, tags, user, tag_id):
        with pytest.raises(NotFoundException):
            tags.get_by_id(user.id, tag_id)

    def test_update_and_delete_foreign_tag_not_found(self, tags, user, other_user):
        tag = tags.create(other_user.id, 'theirs')

        with pytest.raises(NotFoundException):
            tags.update(user.id, tag.id, 'mine now')
        with pytest.raises(NotFoundException):
            tags.delete(user.id, tag.id)

        assert tags.get_by_id(other_user.id, tag.id).name == 'theirs'

    def test_update_and_delete(self, tags, user):
        tag = tags.create(user.id, 'old')

        assert tags.update(user.id, tag.id, 'new').name == 'new'
        assert tags.delete(user.id, tag.id) is True
        assert tags.list(user.id) == []


class TestTagsApi:
    """Tests for /api/tags"""

    def test_crud_flow(self, client, auth_headers, user):
        response = client.post('/api/tags', json={'name': 'work'}, headers=auth_headers)
        assert response.status_code == 201
        tag = response.get_json()['data']
        assert tag['userId'] == user.id

        listed = client.get('/api/tags', headers=auth_headers).get_json()['data']
        assert [t['name'] for t in listed] == ['work']

        response = client.put(f"/api/tags/{tag['id']}", json={'name': 'office'}, headers=auth_headers)
        assert response.get_json()['data']['name'] == 'office'

        response = client.delete(f"/api/tags/{tag['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/tags/{tag['id']}", headers=auth_headers).status_code == 404

    def test_foreign_tag(self, client, auth_headers, other_auth_headers):
        tag = client.post('/api/tags', json={'name': 'mine'}, headers=auth_headers).get_json()['data']

        response = client.get(f"/api/tags/{tag['id']}", headers=other_auth_headers)
        assert response.status_code == 403
        assert response.get_json()['code'] == 'FORBIDDEN'

        response = client.put(f"/api/tags/{tag['id']}", json={'name': 'x'}, headers=other_auth_headers)
        assert response.status_code == 404

    def test_invalid_id(self, client, auth_headers):
        response = client.get('/api/tags/not-a-number', headers=auth_headers)
        assert response.status_code == 404

    def test_requires_auth(self, client):
        assert client.get('/api/tags').status_code == 401
