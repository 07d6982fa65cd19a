# Scope inheritance
#
#   +--------------------+      +--------------------+
#   |  Org scope         |      |  Team scope        |
#   |--------------------|      |--------------------|
#   | directives         |      | directives         |
#   | capabilities       |      | capabilities       |
#   | turns              |      | turns              |
#   | config             |      | config             |
#   +--------------------+      +--------------------+
#              \                      /
#               \                    /
#                v                  v
#        +------------------------------------+
#        |        Conversation scope          |
#        |------------------------------------|
#        | directives   = parents ++ local    |
#        | capabilities = by name, local wins |
#        | turns        = parents ++ local    |
#        | config       = last parent wins,   |
#        |                local beats all     |
#        +------------------------------------+
#                        |
#                        v
#             [ScopeSnapshot -> Provider]
