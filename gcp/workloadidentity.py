# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import collections.abc
import dataclasses
import json
import logging
import typing

import dacite
import kubernetes.client
import yaml

import gcp
import gcp.errors


logger = logging.getLogger(__name__)

# only these fields of a WorkloadIdentityConfig's credentialsConfig are carried over into the
# derived credentials config; everything else is dropped
USED_CREDENTIALS_CONFIG_FIELDS = frozenset((
    'universe_domain',
    'type',
    'audience',
    'subject_token_type',
    'token_url',
    'service_account_impersonation_url',
))


@dataclasses.dataclass(frozen=True)
class WorkloadIdentityConfig:
    '''
    model class for the provider config of a `WorkloadIdentity` targeting GCP, e.g.:

    apiVersion: gcp.provider.extensions.gardener.cloud/v1alpha1
    kind: WorkloadIdentityConfig
    projectID: my-project
    credentialsConfig:
      type: external_account
      audience: //iam.googleapis.com/projects/...
      ...
    '''
    apiVersion: str
    kind: str
    projectID: str = ''
    credentialsConfig: typing.Any = None


def workload_identity_config_from_bytes(raw: bytes) -> WorkloadIdentityConfig:
    '''
    decodes a (YAML or JSON) serialised `WorkloadIdentityConfig`. Unknown attributes are
    rejected, as are documents of a different apiVersion or kind.
    '''
    if not raw:
        raise gcp.errors.InvalidWorkloadIdentityConfigError(
            'cannot parse WorkloadIdentityConfig from empty config',
        )

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as ye:
        raise gcp.errors.InvalidWorkloadIdentityConfigError(
            f'could not decode WorkloadIdentityConfig: {ye}',
        ) from ye

    if not isinstance(parsed, dict):
        raise gcp.errors.InvalidWorkloadIdentityConfigError(
            f'expected a mapping, found {type(parsed).__name__}',
        )

    # null attributes are treated as absent
    parsed = {k: v for k, v in parsed.items() if v is not None}

    try:
        cfg = dacite.from_dict(
            data_class=WorkloadIdentityConfig,
            data=parsed,
            config=dacite.Config(
                strict=True,
            ),
        )
    except dacite.DaciteError as de:
        raise gcp.errors.InvalidWorkloadIdentityConfigError(
            f'could not decode WorkloadIdentityConfig: {de}',
        ) from de

    if cfg.apiVersion != gcp.WORKLOAD_IDENTITY_CONFIG_API_VERSION:
        raise gcp.errors.InvalidWorkloadIdentityConfigError(
            f'unsupported {cfg.apiVersion=}, expected {gcp.WORKLOAD_IDENTITY_CONFIG_API_VERSION}',
        )
    if cfg.kind != gcp.WORKLOAD_IDENTITY_CONFIG_KIND:
        raise gcp.errors.InvalidWorkloadIdentityConfigError(
            f'unsupported {cfg.kind=}, expected {gcp.WORKLOAD_IDENTITY_CONFIG_KIND}',
        )

    return cfg


def filter_allowed(
    raw: collections.abc.Mapping,
    allowed: collections.abc.Set[str]=USED_CREDENTIALS_CONFIG_FIELDS,
) -> dict:
    '''
    returns a copy of `raw` retaining only the keys contained in `allowed` (exact match).
    '''
    return {
        k: v for k, v in raw.items()
        if k in allowed
    }


def credentials_config_from_workload_identity_config(
    cfg: WorkloadIdentityConfig,
    token_mount_dir: str=gcp.WORKLOAD_IDENTITY_MOUNT_PATH,
) -> bytes:
    '''
    renders the (JSON) credentials config to use for the given workload-identity config.

    Only the allow-listed fields of the embedded credentials config are retained.
    `credential_source` always points to the token file below `token_mount_dir`. The output is
    deterministic (sorted keys, compact separators).
    '''
    descriptor = cfg.credentialsConfig
    if descriptor is None:
        raise gcp.errors.InvalidCredentialDescriptorError(
            'WorkloadIdentityConfig does not contain a credentialsConfig',
        )
    if not isinstance(descriptor, dict) or not all(isinstance(k, str) for k in descriptor):
        raise gcp.errors.InvalidCredentialDescriptorError(
            'credentialsConfig must be a mapping with string keys',
        )

    filtered = filter_allowed(descriptor)
    if dropped := sorted(set(descriptor) - set(filtered)):
        logger.warning(f'dropping unsupported credentialsConfig fields: {", ".join(dropped)}')

    filtered['credential_source'] = {
        'file': token_mount_dir + '/token',
        'format': {
            'type': 'text',
        },
    }

    try:
        return json.dumps(
            filtered,
            sort_keys=True,
            separators=(',', ':'),
            ensure_ascii=False,
        ).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise gcp.errors.InvalidCredentialDescriptorError(
            f'could not marshal credentials config: {e}',
        ) from e


def workload_identity_secret_data(
    data: collections.abc.Mapping[str, bytes],
    token_mount_dir: str=gcp.WORKLOAD_IDENTITY_MOUNT_PATH,
) -> dict[str, bytes]:
    '''
    returns a copy of the given secret data, amended with `credentialsConfig` and `projectID`
    entries derived from the WorkloadIdentityConfig found under the `config` key. The passed
    mapping is not modified.

    Calling this function on its own output yields equal output.
    '''
    if gcp.CONFIG_FIELD not in data:
        raise gcp.errors.MissingConfigKeyError(
            f"'{gcp.CONFIG_FIELD}' key is missing in the secret data",
        )

    if gcp.CREDENTIALS_CONFIG_FIELD in data:
        # already derived
        return dict(data)

    try:
        workload_identity_cfg = workload_identity_config_from_bytes(data[gcp.CONFIG_FIELD])
    except gcp.errors.InvalidWorkloadIdentityConfigError as e:
        raise gcp.errors.InvalidWorkloadIdentityConfigError(
            f"could not decode '{gcp.CONFIG_FIELD}' as WorkloadIdentityConfig: {e}",
        ) from e

    credentials_config = credentials_config_from_workload_identity_config(
        cfg=workload_identity_cfg,
        token_mount_dir=token_mount_dir,
    )

    return {
        **data,
        gcp.CREDENTIALS_CONFIG_FIELD: credentials_config,
        gcp.PROJECT_ID_FIELD: workload_identity_cfg.projectID.encode('utf-8'),
    }


def is_workload_identity_secret(secret: kubernetes.client.V1Secret) -> bool:
    '''
    returns whether the given secret is labelled as holding a workload-identity token issued
    for the GCP provider.
    '''
    metadata = secret.metadata
    if not metadata or not metadata.labels:
        return False

    labels = metadata.labels

    if labels.get(gcp.LABEL_PURPOSE) != gcp.LABEL_PURPOSE_WORKLOAD_IDENTITY_TOKEN_REQUESTOR:
        return False

    if labels.get(gcp.LABEL_WORKLOAD_IDENTITY_PROVIDER) != gcp.TYPE:
        return False

    return True
