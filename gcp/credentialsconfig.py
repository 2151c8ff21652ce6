# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import json
import logging

import dacite
import google.auth.identity_pool
import kubernetes.client

import gcp
import gcp.errors
import gcp.tokensupplier
import gcp.workloadidentity
import kube.helper


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class _CredentialsFormat:
    type: str = ''


@dataclasses.dataclass
class _CredentialSource:
    file: str = ''
    url: str = ''
    format: _CredentialsFormat = dataclasses.field(default_factory=_CredentialsFormat)


@dataclasses.dataclass
class _CredConfig:
    '''
    the subset of attributes of a GCP credentials JSON we are interested in. Any other
    attributes are ignored.
    '''
    project_id: str = ''
    client_email: str = ''
    type: str = ''
    audience: str = ''
    credential_source: _CredentialSource = dataclasses.field(default_factory=_CredentialSource)
    universe_domain: str = ''
    token_url: str = ''
    subject_token_type: str = ''
    service_account_impersonation_url: str = ''


def _drop_nulls(raw: dict) -> dict:
    return {
        k: _drop_nulls(v) if isinstance(v, dict) else v
        for k, v in raw.items()
        if v is not None
    }


@dataclasses.dataclass(frozen=True)
class ExternalAccount:
    '''
    attributes only present for credentials of type `external_account` (workload identity
    federation).

    `token_retriever` is used to supply the subject token to be exchanged for a GCP access token,
    instead of reading it from `token_file_path`. It is attached when resolving credentials from
    a secret (as it needs to know the secret's coordinates).
    '''
    token_file_path: str = ''
    audience: str = ''
    universe_domain: str = ''
    token_url: str = ''
    subject_token_type: str = ''
    service_account_impersonation_url: str = ''
    token_request_url: str = ''
    token_retriever: google.auth.identity_pool.SubjectTokenSupplier | None = None


@dataclasses.dataclass(frozen=True)
class CredentialsConfig:
    '''
    a GCP credentials configuration.

    `raw` holds the exact bytes the credentials were parsed from, for passing on to GCP
    client libraries. `external_account` is set iff `type` is `external_account`.
    '''
    raw: bytes
    project_id: str = ''
    email: str = ''
    type: str = ''
    external_account: ExternalAccount | None = None

    @property
    def is_external_account(self) -> bool:
        return self.external_account is not None

    @property
    def token_file_path(self) -> str:
        if not self.external_account:
            return ''
        return self.external_account.token_file_path

    @property
    def audience(self) -> str:
        if not self.external_account:
            return ''
        return self.external_account.audience

    @property
    def universe_domain(self) -> str:
        if not self.external_account:
            return ''
        return self.external_account.universe_domain

    @property
    def token_url(self) -> str:
        if not self.external_account:
            return ''
        return self.external_account.token_url

    @property
    def subject_token_type(self) -> str:
        if not self.external_account:
            return ''
        return self.external_account.subject_token_type

    @property
    def service_account_impersonation_url(self) -> str:
        if not self.external_account:
            return ''
        return self.external_account.service_account_impersonation_url

    @property
    def token_request_url(self) -> str:
        if not self.external_account:
            return ''
        return self.external_account.token_request_url

    @property
    def token_retriever(self) -> google.auth.identity_pool.SubjectTokenSupplier | None:
        if not self.external_account:
            return None
        return self.external_account.token_retriever

    def with_token_retriever(
        self,
        token_retriever: google.auth.identity_pool.SubjectTokenSupplier,
    ) -> 'CredentialsConfig':
        if not self.external_account:
            raise gcp.errors.UnsupportedCredentialTypeError(
                f'token retriever may only be attached to external_account credentials, '
                f'found {self.type=}'
            )
        return dataclasses.replace(
            self,
            external_account=dataclasses.replace(
                self.external_account,
                token_retriever=token_retriever,
            ),
        )

    def with_url_credential_source(self, url: str) -> 'CredentialsConfig':
        '''
        returns a copy of this credentials config that retrieves the subject token from the
        given url (response body is expected to contain the token as text), rather than from
        a file. `raw` is re-rendered accordingly.
        '''
        if not self.external_account:
            raise gcp.errors.UnsupportedCredentialTypeError(
                f'url credential source is only supported for external_account credentials, '
                f'found {self.type=}'
            )

        raw = json.loads(self.raw)
        raw['credential_source'] = {
            'url': url,
            'format': {
                'type': 'text',
            },
        }

        return dataclasses.replace(
            self,
            raw=json.dumps(
                raw,
                sort_keys=True,
                separators=(',', ':'),
                ensure_ascii=False,
            ).encode('utf-8'),
            external_account=dataclasses.replace(
                self.external_account,
                token_file_path='',
                token_request_url=url,
            ),
        )


def credentials_config_from_json(data: bytes) -> CredentialsConfig:
    '''
    parses the given GCP credentials JSON (either a service-account key, or an external-account
    credentials configuration).

    raises `MalformedCredentialError` if data is not a JSON object of the expected shape, and
    `MissingProjectIDError` for service-account keys lacking a project id.
    '''
    if isinstance(data, str):
        data = data.encode('utf-8')

    try:
        parsed = json.loads(data)
    except ValueError as ve:
        raise gcp.errors.MalformedCredentialError(
            f'failed to unmarshal json object: {ve}',
        ) from ve

    if not isinstance(parsed, dict):
        raise gcp.errors.MalformedCredentialError(
            f'expected a json object, found {type(parsed).__name__}',
        )

    try:
        cred_config = dacite.from_dict(
            data_class=_CredConfig,
            data=_drop_nulls(parsed),
        )
    except dacite.DaciteError as de:
        raise gcp.errors.MalformedCredentialError(
            f'failed to unmarshal json object: {de}',
        ) from de

    if cred_config.type == gcp.SERVICE_ACCOUNT_CREDENTIAL_TYPE and not cred_config.project_id:
        raise gcp.errors.MissingProjectIDError('no project id specified')

    if cred_config.type == gcp.EXTERNAL_ACCOUNT_CREDENTIAL_TYPE:
        external_account = ExternalAccount(
            token_file_path=cred_config.credential_source.file,
            audience=cred_config.audience,
            universe_domain=cred_config.universe_domain,
            token_url=cred_config.token_url,
            subject_token_type=cred_config.subject_token_type,
            service_account_impersonation_url=cred_config.service_account_impersonation_url,
            token_request_url=cred_config.credential_source.url,
        )
    else:
        external_account = None

    return CredentialsConfig(
        raw=data,
        project_id=cred_config.project_id,
        email=cred_config.client_email,
        type=cred_config.type,
        external_account=external_account,
    )


def _from_field(
    data: dict[str, bytes],
    field: str,
    secret_name: str,
) -> CredentialsConfig:
    try:
        credentials_config = credentials_config_from_json(data[field])
    except gcp.errors.CredentialsError as ce:
        raise type(ce)(
            f'could not get credentials config from {field!r} field of secret {secret_name}: {ce}',
        ) from ce

    if not credentials_config.project_id and (project_id := data.get(gcp.PROJECT_ID_FIELD)):
        try:
            project_id = project_id.decode('utf-8')
        except UnicodeDecodeError as ude:
            raise gcp.errors.MalformedCredentialError(
                f'{gcp.PROJECT_ID_FIELD!r} field of secret {secret_name} is not valid utf-8',
            ) from ude

        credentials_config = dataclasses.replace(
            credentials_config,
            project_id=project_id,
        )

    return credentials_config


def credentials_config_from_secret_data(
    data: dict[str, bytes],
    secret_name: str='<unknown>',
    token_mount_dir: str=gcp.WORKLOAD_IDENTITY_MOUNT_PATH,
) -> CredentialsConfig:
    '''
    resolves a credentials config from the given (decoded) secret data. Fields are considered
    in the following order:

    1. `serviceaccount.json` (legacy)
    2. `credentialsConfig`; if absent, but `config` is present, it is derived from the
       WorkloadIdentityConfig found there (the passed data is not modified)

    In both cases, an empty project id is filled from the `projectID` field, if present.
    '''
    if gcp.SERVICE_ACCOUNT_JSON_FIELD in data:
        logger.debug(f'reading credentials from {gcp.SERVICE_ACCOUNT_JSON_FIELD} of {secret_name}')
        return _from_field(
            data=data,
            field=gcp.SERVICE_ACCOUNT_JSON_FIELD,
            secret_name=secret_name,
        )

    if gcp.CREDENTIALS_CONFIG_FIELD not in data and gcp.CONFIG_FIELD in data:
        logger.debug(f'deriving {gcp.CREDENTIALS_CONFIG_FIELD} for {secret_name}')
        data = gcp.workloadidentity.workload_identity_secret_data(
            data=data,
            token_mount_dir=token_mount_dir,
        )

    if gcp.CREDENTIALS_CONFIG_FIELD in data:
        return _from_field(
            data=data,
            field=gcp.CREDENTIALS_CONFIG_FIELD,
            secret_name=secret_name,
        )

    raise gcp.errors.NoCredentialMaterialError(
        f"secret {secret_name} doesn't have a credentials config json (expected field: "
        f'{gcp.SERVICE_ACCOUNT_JSON_FIELD!r} or {gcp.CREDENTIALS_CONFIG_FIELD!r})'
    )


def credentials_config_from_secret(
    secret: kubernetes.client.V1Secret,
    secret_helper: kube.helper.KubernetesSecretHelper | None=None,
    token_mount_dir: str=gcp.WORKLOAD_IDENTITY_MOUNT_PATH,
) -> CredentialsConfig:
    '''
    resolves a credentials config from the given secret (see
    `credentials_config_from_secret_data`).

    For credentials of type `external_account`, a `SecretTokenSupplier` bound to the secret's
    namespace and name is attached; it re-reads the secret (using `secret_helper`) whenever a
    subject token is requested.
    '''
    metadata = secret.metadata or kubernetes.client.V1ObjectMeta()
    namespace = metadata.namespace or ''
    name = metadata.name or ''

    credentials_config = credentials_config_from_secret_data(
        data=kube.helper.secret_data(secret),
        secret_name=f'{namespace}/{name}',
        token_mount_dir=token_mount_dir,
    )

    if not credentials_config.is_external_account:
        return credentials_config

    if not secret_helper:
        raise gcp.errors.NoSecretClientError(
            f'secret {namespace}/{name} holds external_account credentials, which require '
            'a secret helper for retrieving subject tokens'
        )

    return credentials_config.with_token_retriever(
        gcp.tokensupplier.SecretTokenSupplier(
            secret_helper=secret_helper,
            namespace=namespace,
            name=name,
        ),
    )


def credentials_config_from_secret_reference(
    secret_helper: kube.helper.KubernetesSecretHelper,
    namespace: str,
    name: str,
    token_mount_dir: str=gcp.WORKLOAD_IDENTITY_MOUNT_PATH,
) -> CredentialsConfig:
    logger.info(f'reading credentials from secret {namespace}/{name}')
    secret = secret_helper.get_secret(name=name, namespace=namespace)
    if not secret:
        raise gcp.errors.SecretNotFoundError(namespace=namespace, name=name)

    return credentials_config_from_secret(
        secret=secret,
        secret_helper=secret_helper,
        token_mount_dir=token_mount_dir,
    )
