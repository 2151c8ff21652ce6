# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
errors raised while resolving GCP credentials.

Credential material is static configuration; none of these errors is retryable. Errors raised
by the token supplier are also `google.auth.exceptions.RefreshError`s, so an in-progress
token exchange is aborted.
'''

import google.auth.exceptions


class CredentialsError(ValueError):
    pass


class MalformedCredentialError(CredentialsError):
    pass


class MissingProjectIDError(CredentialsError):
    pass


class InvalidProjectIDError(CredentialsError):
    pass


class NoCredentialMaterialError(CredentialsError):
    pass


class MissingConfigKeyError(CredentialsError):
    pass


class InvalidWorkloadIdentityConfigError(CredentialsError):
    pass


class InvalidCredentialDescriptorError(CredentialsError):
    pass


class PolicyViolationError(CredentialsError):
    pass


class UnsupportedCredentialTypeError(CredentialsError):
    pass


class NoSecretClientError(CredentialsError):
    pass


class SecretNotFoundError(CredentialsError):
    def __init__(self, namespace: str, name: str):
        self.namespace = namespace
        self.name = name
        super().__init__(f'secret {namespace}/{name} not found')


class TokenSupplierError(google.auth.exceptions.RefreshError, CredentialsError):
    '''
    base class for errors raised while supplying a subject token to google-auth.
    `retryable` is always false.
    '''
    def __init__(self, *args):
        super().__init__(*args, retryable=False)


class NotAWorkloadIdentitySecretError(TokenSupplierError):
    pass


class TokenFieldMissingError(TokenSupplierError):
    pass


class TokenSecretNotFoundError(TokenSupplierError):
    pass


class MalformedTokenError(TokenSupplierError):
    pass
