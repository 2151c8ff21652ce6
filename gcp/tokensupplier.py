# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import logging

import google.auth.identity_pool

import gcp
import gcp.errors
import gcp.workloadidentity
import kube.helper


logger = logging.getLogger(__name__)


class SecretTokenSupplier(google.auth.identity_pool.SubjectTokenSupplier):
    '''
    supplies the subject token for a workload-identity federation token exchange from a
    kubernetes secret. The secret is read upon each request (tokens are rotated in-place by
    gardener), so no token is held in memory in between.

    Only secrets labelled as workload-identity token holders for the GCP provider are trusted.
    Failures are never retried, and there is no fallback.
    '''
    def __init__(
        self,
        secret_helper: kube.helper.KubernetesSecretHelper,
        namespace: str,
        name: str,
    ):
        self.secret_helper = secret_helper
        self.namespace = namespace
        self.name = name

    def fetch_token(self) -> str:
        secret = self.secret_helper.get_secret(name=self.name, namespace=self.namespace)
        if not secret:
            raise gcp.errors.TokenSecretNotFoundError(
                f'secret {self.namespace}/{self.name} not found',
            )

        if not gcp.workloadidentity.is_workload_identity_secret(secret):
            raise gcp.errors.NotAWorkloadIdentitySecretError(
                f'secret {self.namespace}/{self.name} is not with purpose '
                f'{gcp.LABEL_PURPOSE_WORKLOAD_IDENTITY_TOKEN_REQUESTOR} for provider {gcp.TYPE}'
            )

        data = kube.helper.secret_data(secret)
        if (token := data.get(gcp.TOKEN_FIELD)) is None:
            raise gcp.errors.TokenFieldMissingError(
                f'secret {self.namespace}/{self.name} does not contain a token',
            )

        try:
            token = token.decode('utf-8')
        except UnicodeDecodeError as ude:
            raise gcp.errors.MalformedTokenError(
                f'token of secret {self.namespace}/{self.name} is not valid utf-8',
            ) from ude

        logger.debug(f'read subject token from secret {self.namespace}/{self.name}')
        return token

    def get_subject_token(self, context, request):
        # called by google-auth during token exchange; context and request are not needed
        return self.fetch_token()

    def __repr__(self):
        return f'{self.__class__.__name__}({self.namespace}/{self.name})'
