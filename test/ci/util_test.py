# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import pathlib
import sys
import unittest

import pytest

from ci.util import Failure
import ci.util as examinee


def test_fail(capsys):
    with pytest.raises(Failure):
        examinee.fail(msg='foo bar')

    stdout, stderr = capsys.readouterr()
    assert 'ERROR: foo bar' == stderr.strip()
    assert len(stdout) == 0


def test_fail_without_msg(capsys):
    with pytest.raises(Failure):
        examinee.fail()

    stdout, stderr = capsys.readouterr()
    assert len(stdout) == 0
    assert len(stderr) == 0


def test_not_none():
    assert examinee.not_none(0) == 0

    with pytest.raises(Failure):
        examinee.not_none(None)


class UtilTest(unittest.TestCase):
    def test_not_empty(self):
        result = examinee.not_empty('foo')

        self.assertEqual('foo', result)

        forbidden = ['', None, [], ()]

        for value in forbidden:
            with self.assertRaises(Failure) as cm:
                examinee.not_empty(value)
            self.assertIn('must not be empty', str(cm.exception))

    def test_existing_file(self):
        existing_file = sys.executable

        result = examinee.existing_file(existing_file)

        self.assertEqual(existing_file, result)

        with self.assertRaises(Failure) as cm:
            examinee.existing_file('no such file, I hope')
        self.assertIn('not an existing file', str(cm.exception))

        # should also work with pathlib.Path
        existing_file = pathlib.Path(existing_file)
        self.assertEqual(examinee.existing_file(existing_file), existing_file)

    def test_merge_dicts_simple(self):
        left = {1: {2: 3}}
        right = {1: {4: 5}, 6: 7}

        merged = examinee.merge_dicts(left, right)

        self.assertEqual(
            merged,
            {
                1: {2: 3, 4: 5},
                6: 7,
            }
        )

    def test_merge_dicts_replaces_lists(self):
        left = {1: [3, 1, 0], 2: {3: [4]}}
        right = {1: [1, 2, 4]}

        merged = examinee.merge_dicts(left, right)

        self.assertEqual(
            merged,
            {1: [1, 2, 4], 2: {3: [4]}},
        )

    def test_merge_dicts_does_not_modify_args(self):
        from copy import deepcopy
        first = {1: {2: 3}}
        second = {1: {4: 5}, 6: 7}
        first_arg = deepcopy(first)
        second_arg = deepcopy(second)

        merged = examinee.merge_dicts(first_arg, second_arg)

        self.assertEqual(
            merged,
            {
                1: {2: 3, 4: 5},
                6: 7,
            }
        )
        self.assertEqual(first, first_arg)
        self.assertEqual(second, second_arg)

    def test_merge_dicts_three_way_merge(self):
        first = {1: [3, 1, 0]}
        second = {1: [1, 2, 4], 2: {3: 4}}
        third = {2: {5: 6}}

        merged = examinee.merge_dicts(first, second, third)

        self.assertEqual(
            merged,
            {
                1: [1, 2, 4],
                2: {3: 4, 5: 6},
            }
        )

    def test_merge_dicts_requires_other(self):
        with self.assertRaises(Failure):
            examinee.merge_dicts({})
