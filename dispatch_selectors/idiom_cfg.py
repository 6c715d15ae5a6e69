import addict

# solc's function routing table compares the call selector against each known
# selector and jumps to the handler when they match, five instructions:
#
#   80          DUP1
#   63 xxxxxxxx PUSH4 <selector>
#   14          EQ                  (LT/GT in binary search dispatchers)
#   6x ..       PUSH<n> <handler>
#   57          JUMPI
dispatch_idiom = addict.Dict({
    'jump':         'JUMPI',
    'compare':      frozenset(('EQ', 'LT', 'GT')),
    'selector':     'PUSH4',
    'dup':          'DUP1',
    'jump_dest':    'JUMPDEST',
})

# positions before the JUMPI
offsets = addict.Dict({
    'target':   1,
    'compare':  2,
    'selector': 3,
    'dup':      4,
})
