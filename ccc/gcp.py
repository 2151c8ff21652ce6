import collections.abc
import json
import logging

import google.auth.credentials
import google.auth.identity_pool
import google.oauth2.service_account as service_account

import gcp
import gcp.credentialsconfig
import gcp.errors


logger = logging.getLogger(__name__)


def _external_account_credentials(
    credentials_config: gcp.credentialsconfig.CredentialsConfig,
    scopes: collections.abc.Sequence[str] | None,
):
    if not (token_retriever := credentials_config.token_retriever):
        # subject token is read from credential_source (file or url) by google-auth
        return google.auth.identity_pool.Credentials.from_info(
            json.loads(credentials_config.raw),
            scopes=scopes,
        )

    kwargs = {}
    if credentials_config.service_account_impersonation_url:
        kwargs['service_account_impersonation_url'] = \
            credentials_config.service_account_impersonation_url
    if credentials_config.universe_domain:
        kwargs['universe_domain'] = credentials_config.universe_domain
    if credentials_config.token_url:
        kwargs['token_url'] = credentials_config.token_url

    return google.auth.identity_pool.Credentials(
        audience=credentials_config.audience,
        subject_token_type=credentials_config.subject_token_type,
        subject_token_supplier=token_retriever,
        scopes=scopes,
        **kwargs,
    )


def credentials(
    credentials_config: gcp.credentialsconfig.CredentialsConfig,
    scopes: collections.abc.Sequence[str] | None=None,
) -> google.auth.credentials.Credentials:
    '''
    creates google-auth credentials for the given credentials config. No requests are sent;
    tokens are retrieved lazily by google-auth upon first use.
    '''
    if credentials_config.type == gcp.SERVICE_ACCOUNT_CREDENTIAL_TYPE:
        return service_account.Credentials.from_service_account_info(
            json.loads(credentials_config.raw),
            scopes=scopes,
        )

    if credentials_config.type == gcp.EXTERNAL_ACCOUNT_CREDENTIAL_TYPE:
        logger.debug(f'creating workload-identity credentials for {credentials_config.audience}')
        return _external_account_credentials(
            credentials_config=credentials_config,
            scopes=scopes,
        )

    raise gcp.errors.UnsupportedCredentialTypeError(
        f'cannot create credentials of {credentials_config.type=}',
    )
