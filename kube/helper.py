# Copyright (c) 2019-2020 SAP SE or an SAP affiliate company. All rights reserved. This file is
# licensed under the Apache Software License, v. 2 except as noted otherwise in the LICENSE file
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
import base64
import logging

from kubernetes.client import (
    CoreV1Api,
    V1Secret,
)
from kubernetes.client.rest import ApiException

from ci.util import not_none


logger = logging.getLogger(__name__)


def secret_data(secret: V1Secret) -> dict[str, bytes]:
    '''
    returns the (base64-decoded) data of the given secret. `string_data` (only set on secrets
    not yet read back from the api-server) takes precedence, as it does on the api-server.
    '''
    data = {
        k: base64.b64decode(v)
        for k, v in (secret.data or {}).items()
    }
    data.update({
        k: v.encode('utf-8')
        for k, v in (secret.string_data or {}).items()
    })
    return data


class KubernetesSecretHelper:
    '''Helper class for handling kubernetes secret objects'''
    def __init__(self, core_api: CoreV1Api):
        self.core_api = not_none(core_api)

    def get_secret(self, name: str, namespace: str) -> V1Secret | None:
        '''Returns the `V1Secret` with the given name in the given namespace, or `None`'''
        try:
            secret = self.core_api.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as ae:
            if not ae.status == 404:
                raise ae
            logger.debug(f'secret {namespace}/{name} not found')
            return None
        return secret
