import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import Role


@pytest.mark.django_db
class TestLogin:

    def test_returns_token_pair_and_role(self, api_client, admin_user):
        response = api_client.post(
            reverse('users:login'), {'email': admin_user.email, 'password': 'AdminPass123!'}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['access']
        assert response.data['refresh']
        assert response.data['user']['role'] == 'admin'
        assert response.data['user']['is_admin'] is True

    def test_email_is_case_insensitive(self, api_client, admin_user):
        response = api_client.post(
            reverse('users:login'), {'email': 'ADMIN@Example.com', 'password': 'AdminPass123!'}
        )

        assert response.status_code == status.HTTP_200_OK

    def test_wrong_password_and_unknown_email_look_the_same(self, api_client, admin_user):
        wrong = api_client.post(
            reverse('users:login'), {'email': admin_user.email, 'password': 'nope-nope-1'}
        )
        unknown = api_client.post(
            reverse('users:login'), {'email': 'nobody@example.com', 'password': 'nope-nope-1'}
        )

        assert wrong.status_code == unknown.status_code == status.HTTP_401_UNAUTHORIZED
        assert wrong.data == unknown.data

    def test_deactivated_account(self, api_client, user_inactive):
        response = api_client.post(
            reverse('users:login'), {'email': user_inactive.email, 'password': 'TestPass123!'}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_missing_password(self, api_client):
        response = api_client.post(reverse('users:login'), {'email': 'admin@example.com'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stamps_last_login(self, api_client, admin_user):
        assert admin_user.last_login is None

        api_client.post(reverse('users:login'), {'email': admin_user.email, 'password': 'AdminPass123!'})

        admin_user.refresh_from_db()
        assert admin_user.last_login is not None


@pytest.mark.django_db
class TestLogout:

    def test_logout(self, admin_client):
        response = admin_client.post(reverse('users:logout'), {})

        assert response.status_code == status.HTTP_204_NO_CONTENT

    def test_with_valid_refresh(self, admin_client, admin_user):
        response = admin_client.post(reverse('users:logout'), {'refresh': str(RefreshToken.for_user(admin_user))})

        assert response.status_code == status.HTTP_204_NO_CONTENT

    def test_invalid_refresh(self, admin_client):
        response = admin_client.post(reverse('users:logout'), {'refresh': 'not-a-token'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_requires_login(self, api_client):
        response = api_client.post(reverse('users:logout'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestMe:

    def test_team_member_sees_own_account(self, user_client, regular_user):
        response = user_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == regular_user.email
        assert response.data['role'] == 'user'
        assert response.data['is_admin'] is False
        assert response.data['name'] == 'Team Member'

    def test_requires_login(self, api_client):
        response = api_client.get(reverse('users:current-user'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestTeam:

    def test_admins_listed_first(self, admin_client, admin_user, regular_user):
        response = admin_client.get(reverse('users:team-list'))

        assert response.status_code == status.HTTP_200_OK
        assert [a['email'] for a in response.data] == [admin_user.email, regular_user.email]

    def test_filter_by_role(self, admin_client, regular_user):
        response = admin_client.get(reverse('users:team-list'), {'role': 'user'})

        assert [a['email'] for a in response.data] == [regular_user.email]

    def test_unknown_role_filter(self, admin_client):
        response = admin_client.get(reverse('users:team-list'), {'role': 'owner'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_team_member_cannot_list(self, user_client):
        response = user_client.get(reverse('users:team-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_promote(self, admin_client, regular_user):
        url = reverse('users:team-member', kwargs={'user_id': regular_user.id})
        response = admin_client.patch(url, {'role': 'admin'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        regular_user.refresh_from_db()
        assert regular_user.role == Role.ADMIN

    def test_cannot_demote_last_admin(self, admin_client, admin_user):
        url = reverse('users:team-member', kwargs={'user_id': admin_user.id})
        response = admin_client.patch(url, {'role': 'user'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        admin_user.refresh_from_db()
        assert admin_user.role == Role.ADMIN

    def test_deactivate(self, admin_client, regular_user):
        url = reverse('users:team-member', kwargs={'user_id': regular_user.id})
        response = admin_client.patch(url, {'is_active': False}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_active'] is False

    def test_empty_update(self, admin_client, regular_user):
        url = reverse('users:team-member', kwargs={'user_id': regular_user.id})
        response = admin_client.patch(url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_account(self, admin_client):
        url = reverse('users:team-member', kwargs={'user_id': '00000000-0000-0000-0000-000000000000'})
        response = admin_client.patch(url, {'role': 'admin'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestAdminRole:
    """The admin API only opens for accounts holding the admin role."""

    def test_team_member_rejected(self, user_client):
        response = user_client.get(reverse('promotions:promo-code-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_anonymous_rejected(self, api_client):
        response = api_client.get(reverse('promotions:promo-code-list'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_admin_allowed(self, admin_client):
        response = admin_client.get(reverse('promotions:promo-code-list'))

        assert response.status_code == status.HTTP_200_OK

    def test_staff_flag_alone_is_not_enough(self, api_client, regular_user):
        regular_user.is_staff = True
        regular_user.save()
        api_client.force_authenticate(regular_user)

        response = api_client.get(reverse('promotions:promo-code-list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
