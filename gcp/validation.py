# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections.abc
import dataclasses
import re
import urllib.parse

import kubernetes.client

import gcp
import gcp.credentialsconfig
import gcp.errors
import gcp.workloadidentity
import kube.helper


project_id_regex = re.compile(r'^(?P<project>[a-z][a-z0-9-]{4,28}[a-z0-9])$')

# fields a WorkloadIdentityConfig's credentialsConfig must contain (impersonation is optional)
REQUIRED_CREDENTIALS_CONFIG_FIELDS = (
    'audience',
    'subject_token_type',
    'token_url',
    'type',
    'universe_domain',
)


@dataclasses.dataclass(frozen=True)
class WorkloadIdentityPolicy:
    '''
    restricts the token-exchange endpoints credentials may use: the token url must be one of
    `allowed_token_urls` (exact match), the service-account impersonation url (if any) must
    match (`re.search`) at least one of `allowed_service_account_impersonation_url_regexps`.
    '''
    allowed_token_urls: collections.abc.Sequence[str] = gcp.DEFAULT_ALLOWED_TOKEN_URLS
    allowed_service_account_impersonation_url_regexps: collections.abc.Sequence[str] = \
        gcp.DEFAULT_ALLOWED_SERVICE_ACCOUNT_IMPERSONATION_URL_REGEXPS

    def token_url_violations(self, token_url: str) -> list[str]:
        if token_url in self.allowed_token_urls:
            return []
        return [
            f'{token_url=} is not allowed, allowed token urls: '
            f'{", ".join(self.allowed_token_urls)}'
        ]

    def impersonation_url_violations(self, impersonation_url: str) -> list[str]:
        if not impersonation_url:
            return []
        for regex in self.allowed_service_account_impersonation_url_regexps:
            if re.search(regex, impersonation_url):
                return []
        return [
            f'{impersonation_url=} does not match any of the allowed expressions: '
            f'{", ".join(self.allowed_service_account_impersonation_url_regexps)}'
        ]

    def validate(
        self,
        credentials_config: gcp.credentialsconfig.CredentialsConfig,
    ) -> gcp.credentialsconfig.CredentialsConfig:
        '''
        raises `PolicyViolationError` if the given (external_account) credentials use token-
        exchange endpoints not allowed by this policy. Other credential types are passed through.
        '''
        if not credentials_config.is_external_account:
            return credentials_config

        violations = [
            *self.token_url_violations(credentials_config.token_url),
            *self.impersonation_url_violations(
                credentials_config.service_account_impersonation_url,
            ),
        ]
        if violations:
            raise gcp.errors.PolicyViolationError('; '.join(violations))

        return credentials_config


def validate_workload_identity_config(
    cfg: gcp.workloadidentity.WorkloadIdentityConfig,
    policy: WorkloadIdentityPolicy | None=None,
) -> list[str]:
    '''
    validates a WorkloadIdentityConfig as submitted by users. Returns a (possibly empty) list
    of error messages.
    '''
    errors = []

    if not project_id_regex.fullmatch(cfg.projectID or ''):
        errors.append(f'projectID: {cfg.projectID!r} does not match the expected format')

    raw = cfg.credentialsConfig
    if raw is None:
        errors.append('credentialsConfig: is required')
        return errors
    if not isinstance(raw, dict):
        errors.append('credentialsConfig: has invalid format')
        return errors

    # overwritten upon derivation anyway
    raw = {k: v for k, v in raw.items() if k != 'credential_source'}

    if extra_fields := sorted(
        str(k) for k in raw
        if k not in gcp.workloadidentity.USED_CREDENTIALS_CONFIG_FIELDS
    ):
        errors.append(
            f'credentialsConfig: contains extra fields ({", ".join(extra_fields)}), '
            f'allowed fields are: '
            f'{", ".join(sorted(gcp.workloadidentity.USED_CREDENTIALS_CONFIG_FIELDS))}'
        )

    for field in REQUIRED_CREDENTIALS_CONFIG_FIELDS:
        if field not in raw:
            errors.append(f'credentialsConfig: missing required field: {field!r}')

    if (cred_type := raw.get('type')) != gcp.EXTERNAL_ACCOUNT_CREDENTIAL_TYPE:
        errors.append(
            f'credentialsConfig.type: {cred_type!r} should equal '
            f'{gcp.EXTERNAL_ACCOUNT_CREDENTIAL_TYPE!r}'
        )

    if (subject_token_type := raw.get('subject_token_type')) != gcp.JWT_SUBJECT_TOKEN_TYPE:
        errors.append(
            f'credentialsConfig.subject_token_type: {subject_token_type!r} should equal '
            f'{gcp.JWT_SUBJECT_TOKEN_TYPE!r}'
        )

    token_url = raw.get('token_url')
    if not isinstance(token_url, str):
        errors.append(f'credentialsConfig.token_url: {token_url!r} should be string')
    elif urllib.parse.urlparse(token_url).scheme != 'https':
        errors.append(f'credentialsConfig.token_url: {token_url!r} should start with https://')
    elif policy:
        errors.extend(
            f'credentialsConfig.token_url: {v}' for v in policy.token_url_violations(token_url)
        )

    impersonation_url = raw.get('service_account_impersonation_url')
    if impersonation_url is not None and not isinstance(impersonation_url, str):
        errors.append(
            'credentialsConfig.service_account_impersonation_url: '
            f'{impersonation_url!r} should be string'
        )
    elif policy and impersonation_url:
        errors.extend(
            f'credentialsConfig.service_account_impersonation_url: {v}'
            for v in policy.impersonation_url_violations(impersonation_url)
        )

    return errors


def validate_workload_identity_config_update(
    old_cfg: gcp.workloadidentity.WorkloadIdentityConfig,
    new_cfg: gcp.workloadidentity.WorkloadIdentityConfig,
    policy: WorkloadIdentityPolicy | None=None,
) -> list[str]:
    errors = []
    if old_cfg.projectID != new_cfg.projectID:
        errors.append('projectID: field is immutable')

    errors.extend(validate_workload_identity_config(cfg=new_cfg, policy=policy))
    return errors


def validate_cloud_provider_secret(secret: kubernetes.client.V1Secret):
    '''
    validates a secret holding a (legacy) service-account key, as referenced by shoot clusters.
    '''
    data = kube.helper.secret_data(secret)
    if not (service_account_json := data.get(gcp.SERVICE_ACCOUNT_JSON_FIELD)):
        raise gcp.errors.NoCredentialMaterialError(
            f'missing {gcp.SERVICE_ACCOUNT_JSON_FIELD!r} field in secret',
        )

    credentials_config = gcp.credentialsconfig.credentials_config_from_json(service_account_json)
    if not credentials_config.project_id:
        raise gcp.errors.MissingProjectIDError('no project id specified')

    if not project_id_regex.fullmatch(credentials_config.project_id):
        raise gcp.errors.InvalidProjectIDError(
            f'service account project ID does not match the expected format '
            f'{project_id_regex.pattern!r}'
        )
