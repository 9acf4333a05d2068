from enum import Flag


class Compliant(Flag):
    '''It indicates which degree of compliantness the decoded blob must reflect the format'''
    NONE    = 0
    OFFSETS = 1 << 0
    BOUNDS  = 1 << 1
    STRICT  = OFFSETS | BOUNDS
