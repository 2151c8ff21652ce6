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

import logging
import os

import kubernetes.client
from kubernetes import config, client
from kubernetes.config.kube_config import KubeConfigLoader

from ci.util import existing_file, not_none
from kube.helper import KubernetesSecretHelper


logger = logging.getLogger(__name__)


class Ctx(object):
    '''
    handles the execution context of kubernetes-api calls.
    Most prominently the retrieval of the 'kubeconfig' to use, which is either passed
    explicitly (as a dict), or via env var KUBECONFIG. If neither is present, the
    in-cluster configuration (service-account token mounted into the pod) is used.
    '''

    def __init__(self, kubeconfig_dict: dict=None):
        if not kubeconfig_dict:
            self.kubeconfig = None
            return
        self.set_kubecfg(kubeconfig_dict=kubeconfig_dict)

    def get_kubecfg(self) -> kubernetes.client.ApiClient:
        if self.kubeconfig:
            return kubernetes.client.ApiClient(configuration=self.kubeconfig)

        if kubeconfig := os.environ.get('KUBECONFIG', None):
            logger.debug(f'using kubeconfig from {kubeconfig=}')
            return config.new_client_from_config(config_file=existing_file(kubeconfig))

        logger.debug('KUBECONFIG env var not set - using in-cluster config')
        configuration = kubernetes.client.Configuration()
        config.load_incluster_config(client_configuration=configuration)
        return kubernetes.client.ApiClient(configuration=configuration)

    def set_kubecfg(self, kubeconfig_dict: dict):
        not_none(kubeconfig_dict)

        configuration = kubernetes.client.Configuration()
        cfg_loader = KubeConfigLoader(dict(kubeconfig_dict))
        cfg_loader.load_and_set(configuration)
        self.kubeconfig = configuration

    def secret_helper(self) -> 'KubernetesSecretHelper':
        return KubernetesSecretHelper(self.create_core_api())

    def create_core_api(self):
        cfg = self.get_kubecfg()
        return client.CoreV1Api(cfg)
