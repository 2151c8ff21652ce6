import json
import unittest.mock

import google.auth.identity_pool
import pytest

import ccc.gcp as examinee
import gcp.credentialsconfig
import gcp.errors


audience = '//iam.googleapis.com/projects/11111111/locations/global/workloadIdentityPools/p/providers/p'


class StaticTokenSupplier(google.auth.identity_pool.SubjectTokenSupplier):
    def __init__(self, token: str):
        self.token = token

    def get_subject_token(self, context, request):
        return self.token


def external_account(**kwargs):
    return gcp.credentialsconfig.credentials_config_from_json(
        json.dumps({
            'type': 'external_account',
            'audience': audience,
            'subject_token_type': 'urn:ietf:params:oauth:token-type:jwt',
            'token_url': 'https://sts.googleapis.com/v1/token',
            'universe_domain': 'googleapis.com',
            'credential_source': {
                'file': '/some/dir/token',
                'format': {'type': 'text'},
            },
            **kwargs,
        }).encode('utf-8'),
    )


def test_service_account_credentials():
    credentials_config = gcp.credentialsconfig.credentials_config_from_json(
        b'{"type": "service_account", "project_id": "test-proj", "client_email": "foo@bar"}',
    )

    with unittest.mock.patch.object(
        examinee.service_account.Credentials,
        'from_service_account_info',
    ) as from_service_account_info:
        creds = examinee.credentials(credentials_config, scopes=['scope'])

    from_service_account_info.assert_called_once_with(
        {'type': 'service_account', 'project_id': 'test-proj', 'client_email': 'foo@bar'},
        scopes=['scope'],
    )
    assert creds is from_service_account_info.return_value


def test_external_account_credentials_from_file_source():
    creds = examinee.credentials(external_account())

    assert isinstance(creds, google.auth.identity_pool.Credentials)
    assert creds.info['audience'] == audience
    assert creds.info['credential_source'] == {
        'file': '/some/dir/token',
        'format': {'type': 'text'},
    }


def test_external_account_credentials_with_token_retriever():
    credentials_config = external_account(
        service_account_impersonation_url=(
            'https://iamcredentials.googleapis.com/v1/projects/-/serviceAccounts/'
            'foo@bar.iam.gserviceaccount.com:generateAccessToken'
        ),
    ).with_token_retriever(StaticTokenSupplier('a-token'))

    creds = examinee.credentials(credentials_config, scopes=['scope'])

    assert isinstance(creds, google.auth.identity_pool.Credentials)
    assert creds.retrieve_subject_token(None) == 'a-token'
    assert creds.service_account_email == 'foo@bar.iam.gserviceaccount.com'


@pytest.mark.parametrize('credential_type', ('', 'authorized_user'))
def test_unsupported_credential_type(credential_type):
    credentials_config = gcp.credentialsconfig.CredentialsConfig(
        raw=b'{}',
        type=credential_type,
    )

    with pytest.raises(gcp.errors.UnsupportedCredentialTypeError):
        examinee.credentials(credentials_config)
