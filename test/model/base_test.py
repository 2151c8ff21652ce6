# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import pytest

import model.base as examinee
from model.base import ModelValidationError


class SimpleModel(examinee.ModelBase):
    def __init__(self, raw_dict):
        super().__init__(raw_dict=raw_dict)
        self._apply_defaults(raw_dict=raw_dict)

    def _required_attributes(self):
        return ('name',)

    def _optional_attributes(self):
        return ('description',)

    def _defaults_dict(self):
        return {
            'items': ['a', 'b'],
            'nested': {'x': 1},
        }


def test_raw_dict_values_are_stored():
    empty_dict = dict()
    model_base = examinee.ModelBase(raw_dict=empty_dict)

    assert model_base.raw is empty_dict


def test_defaults_are_applied():
    element = SimpleModel({'name': 'foo', 'items': ['c'], 'nested': {'y': 2}})

    assert element.raw == {
        'name': 'foo',
        'items': ['c'],
        'nested': {'x': 1, 'y': 2},
    }


def test_validation():
    SimpleModel({'name': 'foo', 'description': 'bar'}).validate()


def test_validation_fails_on_missing_key():
    with pytest.raises(ModelValidationError):
        SimpleModel({'description': 'bar'}).validate()


def test_validation_fails_on_unknown_key():
    with pytest.raises(ModelValidationError) as ei:
        SimpleModel({'name': 'foo', 'unknown': 'bar'}).validate()

    assert 'unknown' in str(ei.value)
