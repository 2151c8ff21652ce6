'''
dict-based configuration model.

Configuration elements wrap a (typically YAML-parsed) dict and expose its contents through
getter-methods. Defaults are merged in upon construction; `validate` checks for absent required
and unknown attributes.
'''
