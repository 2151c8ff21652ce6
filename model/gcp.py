import os
import re

import yaml

import gcp
import gcp.validation
import model.base


class WorkloadIdentityCfg(model.base.ModelBase):
    '''
    configuration for resolving workload-identity credentials, e.g.:

    token_mount_dir: /var/run/secrets/gardener.cloud/workload-identity
    allowed_token_urls:
      - https://sts.googleapis.com/v1/token
    allowed_service_account_impersonation_url_regexps:
      - ^https://iamcredentials\\.googleapis\\.com/v1/projects/-/serviceAccounts/.+:generateAccessToken$

    absent attributes are defaulted; configured lists replace the default lists.
    '''
    def __init__(self, raw_dict: dict):
        super().__init__(raw_dict=raw_dict)
        self._apply_defaults(raw_dict=raw_dict)

    def _defaults_dict(self):
        return {
            'token_mount_dir': gcp.WORKLOAD_IDENTITY_MOUNT_PATH,
            'allowed_token_urls': list(gcp.DEFAULT_ALLOWED_TOKEN_URLS),
            'allowed_service_account_impersonation_url_regexps': list(
                gcp.DEFAULT_ALLOWED_SERVICE_ACCOUNT_IMPERSONATION_URL_REGEXPS,
            ),
        }

    def token_mount_dir(self) -> str:
        return self.raw['token_mount_dir']

    def allowed_token_urls(self) -> list[str]:
        return self.raw['allowed_token_urls']

    def allowed_service_account_impersonation_url_regexps(self) -> list[str]:
        return self.raw['allowed_service_account_impersonation_url_regexps']

    def policy(self) -> gcp.validation.WorkloadIdentityPolicy:
        return gcp.validation.WorkloadIdentityPolicy(
            allowed_token_urls=tuple(self.allowed_token_urls()),
            allowed_service_account_impersonation_url_regexps=tuple(
                self.allowed_service_account_impersonation_url_regexps(),
            ),
        )

    def validate(self):
        super().validate()

        if not os.path.isabs(self.token_mount_dir()):
            raise model.base.ModelValidationError(
                f'token_mount_dir must be an absolute path: {self.token_mount_dir()}'
            )

        for regex in self.allowed_service_account_impersonation_url_regexps():
            try:
                re.compile(regex)
            except re.error as re_error:
                raise model.base.ModelValidationError(
                    f'invalid impersonation url expression {regex!r}: {re_error}'
                ) from re_error

    @staticmethod
    def from_file(path: str) -> 'WorkloadIdentityCfg':
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        cfg = WorkloadIdentityCfg(raw_dict=raw)
        cfg.validate()
        return cfg
