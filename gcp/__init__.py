# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
credential resolution for the GCP provider extension.

Kubernetes Secrets handed to the extension carry GCP credentials in one of several shapes
(legacy service-account key, pre-rendered credentials config, or a workload-identity config
from which a credentials config is derived). This package normalises them into a typed
`gcp.credentialsconfig.CredentialsConfig`.
'''

# provider type, as used in workload-identity provider labels
TYPE = 'gcp'

SERVICE_ACCOUNT_CREDENTIAL_TYPE = 'service_account'
EXTERNAL_ACCOUNT_CREDENTIAL_TYPE = 'external_account'

# secret data keys
SERVICE_ACCOUNT_JSON_FIELD = 'serviceaccount.json'
CREDENTIALS_CONFIG_FIELD = 'credentialsConfig'
PROJECT_ID_FIELD = 'projectID'
CONFIG_FIELD = 'config'
TOKEN_FIELD = 'token'

# secret labels
LABEL_PURPOSE = 'security.gardener.cloud/purpose'
LABEL_PURPOSE_WORKLOAD_IDENTITY_TOKEN_REQUESTOR = 'workload-identity-token-requestor'
LABEL_WORKLOAD_IDENTITY_PROVIDER = 'workloadidentity.security.gardener.cloud/provider'

WORKLOAD_IDENTITY_MOUNT_PATH = '/var/run/secrets/gardener.cloud/workload-identity'

WORKLOAD_IDENTITY_CONFIG_API_VERSION = 'gcp.provider.extensions.gardener.cloud/v1alpha1'
WORKLOAD_IDENTITY_CONFIG_KIND = 'WorkloadIdentityConfig'

JWT_SUBJECT_TOKEN_TYPE = 'urn:ietf:params:oauth:token-type:jwt'

DEFAULT_ALLOWED_TOKEN_URLS = (
    'https://sts.googleapis.com/v1/token',
)
DEFAULT_ALLOWED_SERVICE_ACCOUNT_IMPERSONATION_URL_REGEXPS = (
    r'^https://iamcredentials\.googleapis\.com/v1/projects/-/serviceAccounts/.+:generateAccessToken$',
)
